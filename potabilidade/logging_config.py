# potabilidade/logging_config.py
import logging
import logging.handlers
import sys
import os
from datetime import datetime
from potabilidade import config

def setup_logging(log_dir: str = None, level: str = None):
    """Configura o logging para gravar em arquivo e mostrar no console."""
    log_dir = log_dir or config.LOG_DIR
    level = getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)

    # Cria a pasta de logs se não existir
    os.makedirs(log_dir, exist_ok=True)

    log_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)-8s - %(name)-15s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Evita handlers duplicados se setup_logging for chamado duas vezes
    for handler in list(root_logger.handlers):
        if getattr(handler, "_potabilidade", False):
            root_logger.removeHandler(handler)
            handler.close()

    # 1. Arquivo diário com rotação
    log_filename = os.path.join(log_dir, f"api_{datetime.now().strftime('%Y-%m-%d')}.log")
    file_handler = logging.handlers.RotatingFileHandler(
        log_filename, maxBytes=5*1024*1024, backupCount=5, encoding='utf-8'
    )
    file_handler.setFormatter(log_formatter)
    file_handler.setLevel(logging.INFO)
    file_handler._potabilidade = True

    # 2. Console (útil em desenvolvimento e nos logs do container)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(level)
    console_handler._potabilidade = True

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.info("Sistema de logging configurado.")
