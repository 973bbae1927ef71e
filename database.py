# database.py (adaptador PostgreSQL com pool de conexões)
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import psycopg2
from psycopg2 import errors
from psycopg2.pool import ThreadedConnectionPool
from psycopg2.extras import RealDictCursor

from potabilidade import config
from potabilidade.data_models import Leitura, Veredito, Usuario, RegistroHistorico, INDICADORES

SEPARADOR_INDICADORES = "; "

class EmailJaCadastrado(Exception):
    """O e-mail informado já pertence a outro usuário."""

class BancoNaoInicializado(RuntimeError):
    """Operação no repositório antes de abrir() ou depois de fechar()."""

# ==============================================================================
# SEÇÃO 1: CONVERSÕES ENTRE LINHAS DO BANCO E OBJETOS DO DOMÍNIO
# ==============================================================================

def _serializar_indicadores(indicadores: Iterable[str]) -> Optional[str]:
    indicadores = list(indicadores)
    return SEPARADOR_INDICADORES.join(indicadores) if indicadores else None

def _desserializar_indicadores(texto: Optional[str]) -> tuple:
    if not texto:
        return ()
    return tuple(parte.strip() for parte in texto.split(SEPARADOR_INDICADORES.strip()) if parte.strip())

def _para_utc_naive(momento: datetime) -> datetime:
    # As colunas são TIMESTAMP sem fuso: gravamos sempre em UTC
    if momento.tzinfo is not None:
        momento = momento.astimezone(timezone.utc).replace(tzinfo=None)
    return momento

def _de_utc_naive(momento: datetime) -> datetime:
    if momento is not None and momento.tzinfo is None:
        return momento.replace(tzinfo=timezone.utc)
    return momento

def _linha_para_usuario(row) -> Optional[Usuario]:
    if not row:
        return None
    return Usuario(
        id=row["id"],
        nome_usuario=row["nome_usuario"],
        email=row["email"],
        senha=row["senha"],
        criado_em=_de_utc_naive(row.get("criado_em")),
    )

def _linha_para_registro(row) -> RegistroHistorico:
    leitura = Leitura(**{nome: float(row[nome]) for nome in INDICADORES})
    veredito = Veredito(
        status=row["status_geral"],
        indicadores_fora=_desserializar_indicadores(row.get("indicadores_fora")),
    )
    return RegistroHistorico(
        id=row["id"],
        usuario_id=row["usuario_id"],
        leitura=leitura,
        veredito=veredito,
        criado_em=_de_utc_naive(row["criado_em"]),
    )

# ==============================================================================
# SEÇÃO 2: REPOSITÓRIO
# ==============================================================================

class RepositorioPostgres:
    """
    Adaptador de persistência. O pool é criado em abrir() (início da aplicação)
    e encerrado em fechar() (desligamento); as rotas recebem a instância por injeção.
    """
    def __init__(self, connect_kwargs: Optional[dict] = None, minconn: Optional[int] = None,
                 maxconn: Optional[int] = None, pool_factory=ThreadedConnectionPool):
        self.connect_kwargs = connect_kwargs if connect_kwargs is not None else config.get_db_connect_kwargs()
        self.minconn = minconn if minconn is not None else config.DB_POOL_MIN
        self.maxconn = maxconn if maxconn is not None else config.DB_POOL_MAX
        self._pool_factory = pool_factory
        self._pool = None

    # --- CICLO DE VIDA ---
    def abrir(self):
        if self._pool is not None:
            return
        try:
            self._pool = self._pool_factory(self.minconn, self.maxconn, **self.connect_kwargs)
        except psycopg2.Error as e:
            logging.error(f"Erro ao conectar no PostgreSQL: {e}", exc_info=True)
            raise
        logging.info(f"Pool de conexões PostgreSQL aberto ({self.minconn}-{self.maxconn}).")

    def fechar(self):
        if self._pool is None:
            return
        self._pool.closeall()
        self._pool = None
        logging.info("Pool de conexões PostgreSQL encerrado.")

    @property
    def aberto(self) -> bool:
        return self._pool is not None

    @contextmanager
    def conexao(self):
        """
        Empresta uma conexão do pool. Faz COMMIT ao sair sem erros e ROLLBACK
        em caso de exceção; a conexão sempre volta para o pool.
        """
        if self._pool is None:
            raise BancoNaoInicializado("O repositório não foi aberto.")
        conn = self._pool.getconn()
        try:
            yield conn
        except Exception as e:
            logging.warning(f"Transação cancelada (rollback). Erro: {e}")
            conn.rollback()
            raise
        else:
            conn.commit()
        finally:
            self._pool.putconn(conn)

    # --- MIGRAÇÕES ---
    def criar_tabelas(self, migrations_path: Optional[str] = None) -> int:
        """Aplica em ordem as migrações .sql ainda não aplicadas. Retorna a versão final."""
        migrations_path = migrations_path or config.MIGRATIONS_DIR
        if not os.path.isdir(migrations_path):
            raise FileNotFoundError(f"Pasta de migrações '{migrations_path}' não encontrada.")

        with self.conexao() as conn:
            with conn.cursor() as cur:
                cur.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL);")
                cur.execute("SELECT version FROM schema_version;")
                row = cur.fetchone()
                current_version = row[0] if row else 0
                if row is None:
                    cur.execute("INSERT INTO schema_version (version) VALUES (0);")

        migration_files = sorted(f for f in os.listdir(migrations_path) if f.endswith('.sql'))
        for m_file in migration_files:
            try:
                file_version = int(m_file.split('_')[0])
            except (ValueError, IndexError):
                logging.warning(f"Arquivo de migração '{m_file}' com nome inválido. Ignorado.")
                continue
            if file_version <= current_version:
                continue

            logging.info(f"Aplicando migração: {m_file}...")
            with open(os.path.join(migrations_path, m_file), 'r', encoding='utf-8') as f:
                sql_script = f.read()
            with self.conexao() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql_script)
                    cur.execute("UPDATE schema_version SET version = %s;", (file_version,))
            current_version = file_version
            logging.info(f"Banco atualizado para a versão {current_version}.")

        return current_version

    # --- USUÁRIOS ---
    def criar_usuario(self, nome_usuario: str, email: str, senha_hash: str) -> int:
        try:
            with self.conexao() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(
                        "INSERT INTO usuarios (nome_usuario, email, senha) VALUES (%s, %s, %s) RETURNING id",
                        (nome_usuario, email, senha_hash),
                    )
                    return cur.fetchone()["id"]
        except errors.UniqueViolation:
            raise EmailJaCadastrado(email)

    def buscar_usuario_por_email(self, email: str) -> Optional[Usuario]:
        with self.conexao() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT id, nome_usuario, email, senha, criado_em FROM usuarios WHERE email = %s",
                    (email,),
                )
                return _linha_para_usuario(cur.fetchone())

    # --- HISTÓRICO ---
    def inserir_historico(self, usuario_id: int, leitura: Leitura, veredito: Veredito,
                          criado_em: datetime) -> int:
        params = leitura.as_dict()
        params.update({
            "usuario_id": usuario_id,
            "status_geral": veredito.status,
            "indicadores_fora": _serializar_indicadores(veredito.indicadores_fora),
            "criado_em": _para_utc_naive(criado_em),
        })
        with self.conexao() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    """
                    INSERT INTO historico (
                        usuario_id, ph, temperatura, turbidez, cloro, od,
                        condutividade, tds, status_geral, indicadores_fora, criado_em
                    ) VALUES (
                        %(usuario_id)s, %(ph)s, %(temperatura)s, %(turbidez)s, %(cloro)s, %(od)s,
                        %(condutividade)s, %(tds)s, %(status_geral)s, %(indicadores_fora)s, %(criado_em)s
                    ) RETURNING id
                    """,
                    params,
                )
                return cur.fetchone()["id"]

    def listar_historico(self, usuario_id: int) -> List[RegistroHistorico]:
        with self.conexao() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    """
                    SELECT id, usuario_id, ph, temperatura, turbidez, cloro, od,
                           condutividade, tds, status_geral, indicadores_fora, criado_em
                    FROM historico
                    WHERE usuario_id = %s
                    ORDER BY criado_em DESC, id DESC
                    """,
                    (usuario_id,),
                )
                return [_linha_para_registro(row) for row in cur.fetchall()]
