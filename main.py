# main.py
import logging
import sys

import uvicorn

from potabilidade import config
from potabilidade.logging_config import setup_logging

USO = "Uso: main.py [servidor | criar-tabelas]"

def criar_tabelas() -> int:
    """Aplica as migrações no banco configurado e encerra a conexão."""
    from database import RepositorioPostgres

    repositorio = RepositorioPostgres(minconn=1, maxconn=1)
    repositorio.abrir()
    try:
        versao = repositorio.criar_tabelas()
        logging.info(f"Tabelas criadas com sucesso (schema versão {versao}).")
        return versao
    finally:
        repositorio.fechar()

def iniciar_servidor():
    from api_server import app

    logging.info(f"Servidor em http://{config.HOST}:{config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_config=None)

def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    comando = argv[0] if argv else "servidor"

    setup_logging()
    logging.info("=====================================")
    logging.info("||      Potabilidade API           ||")
    logging.info("=====================================")
    logging.info(f"BASE_DIR: {config.BASE_DIR}")
    logging.info(f"LOG_DIR: {config.LOG_DIR}")

    if comando == "criar-tabelas":
        try:
            criar_tabelas()
        except Exception:
            logging.critical("Erro ao criar tabelas.", exc_info=True)
            return 1
    elif comando == "servidor":
        iniciar_servidor()
    else:
        print(USO, file=sys.stderr)
        return 2
    return 0

if __name__ == '__main__':
    sys.exit(main())
