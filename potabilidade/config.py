# potabilidade/config.py
import os

from dotenv import load_dotenv

load_dotenv()

def get_base_dir():
    """Retorna a pasta do projeto (a que contém 'migrations')."""
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

def _get_int(nome: str, padrao: int) -> int:
    valor = os.getenv(nome)
    if valor is None or valor.strip() == "":
        return padrao
    try:
        return int(valor)
    except ValueError:
        raise ValueError(f"A variável de ambiente {nome} deve ser um número inteiro (recebido: {valor!r}).")

BASE_DIR = get_base_dir()
MIGRATIONS_DIR = os.getenv("MIGRATIONS_DIR", os.path.join(BASE_DIR, "migrations"))
LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

VERSAO = "1.0.0"

# --- SEGURANÇA ---
SECRET_KEY = os.getenv("SECRET_KEY")  # obrigatória em produção
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = _get_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)  # 1 dia

# --- BANCO DE DADOS ---
# DATABASE_URL tem prioridade; sem ela usamos os parâmetros separados.
DATABASE_URL = os.getenv("DATABASE_URL")
DB_PARAMS = {
    "dbname": os.getenv("DB_NAME"),
    "user": os.getenv("DB_USER"),
    "password": os.getenv("DB_PASSWORD"),
    "host": os.getenv("DB_HOST"),
    "port": os.getenv("DB_PORT"),
}
DB_SSLMODE = os.getenv("DB_SSLMODE", "prefer")
DB_POOL_MIN = _get_int("DB_POOL_MIN", 1)
DB_POOL_MAX = _get_int("DB_POOL_MAX", 10)

# --- SERVIDOR HTTP ---
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _get_int("PORT", 3000)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

def get_db_connect_kwargs() -> dict:
    """Argumentos para psycopg2.connect e para o pool, sem os valores vazios."""
    if DATABASE_URL:
        return {"dsn": DATABASE_URL, "sslmode": DB_SSLMODE}
    params = {k: v for k, v in DB_PARAMS.items() if v}
    params["sslmode"] = DB_SSLMODE
    return params
