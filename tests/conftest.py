import itertools
import threading

import pytest
from fastapi.testclient import TestClient

from api_server import create_app
from database import EmailJaCadastrado
from potabilidade.auth_manager import GerenciadorAuth
from potabilidade.data_models import Leitura, RegistroHistorico, Usuario

SECRET_DE_TESTE = "segredo-de-teste-com-tamanho-suficiente"

LEITURA_NOMINAL = {
    "ph": 7.0,
    "temperatura": 15.0,
    "turbidez": 3.0,
    "cloro": 1.0,
    "od": 4.0,
    "condutividade": 200.0,
    "tds": 300.0,
}


class RepositorioMemoria:
    """Mesma interface do RepositorioPostgres, guardando tudo em listas."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids_usuario = itertools.count(1)
        self._ids_historico = itertools.count(1)
        self.usuarios = {}
        self.historico = []
        self.aberto = False
        self.falhar_com = None

    def abrir(self):
        self.aberto = True

    def fechar(self):
        self.aberto = False

    def _talvez_falhar(self):
        if self.falhar_com is not None:
            raise self.falhar_com

    def criar_usuario(self, nome_usuario, email, senha_hash):
        self._talvez_falhar()
        with self._lock:
            if email in self.usuarios:
                raise EmailJaCadastrado(email)
            usuario = Usuario(id=next(self._ids_usuario), nome_usuario=nome_usuario, email=email, senha=senha_hash)
            self.usuarios[email] = usuario
            return usuario.id

    def buscar_usuario_por_email(self, email):
        self._talvez_falhar()
        return self.usuarios.get(email)

    def inserir_historico(self, usuario_id, leitura, veredito, criado_em):
        self._talvez_falhar()
        with self._lock:
            registro = RegistroHistorico(
                id=next(self._ids_historico),
                usuario_id=usuario_id,
                leitura=leitura,
                veredito=veredito,
                criado_em=criado_em,
            )
            self.historico.append(registro)
            return registro.id

    def listar_historico(self, usuario_id):
        self._talvez_falhar()
        registros = [r for r in self.historico if r.usuario_id == usuario_id]
        return sorted(registros, key=lambda r: (r.criado_em, r.id), reverse=True)


@pytest.fixture
def leitura_nominal():
    return Leitura(**LEITURA_NOMINAL)


@pytest.fixture
def auth():
    return GerenciadorAuth(secret_key=SECRET_DE_TESTE, algorithm="HS256", expire_minutes=60 * 24)


@pytest.fixture
def repositorio():
    return RepositorioMemoria()


@pytest.fixture
def client(repositorio, auth):
    app = create_app(repositorio=repositorio, auth=auth)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def token(client):
    client.post("/api/cadastro", json={"nome_usuario": "Ana", "email": "ana@example.com", "senha": "s3nha-forte"})
    resposta = client.post("/api/login", json={"email": "ana@example.com", "senha": "s3nha-forte"})
    return resposta.json()["token"]


@pytest.fixture
def headers(token):
    return {"Authorization": f"Bearer {token}"}
