# api_server.py

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, List

from fastapi import APIRouter, FastAPI, HTTPException, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel, ConfigDict, StringConstraints, field_validator

from database import RepositorioPostgres, EmailJaCadastrado
from potabilidade import config
from potabilidade.auth_manager import GerenciadorAuth, TokenInvalido
from potabilidade.avaliacao import avaliar
from potabilidade.data_models import Leitura, INDICADORES

ERRO_INTERNO = "Erro interno do servidor."

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")

# --- MODELOS DE ENTRADA/SAÍDA (Pydantic) ---
TextoCurto = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]

class CadastroIn(BaseModel):
    nome_usuario: TextoCurto
    email: TextoCurto
    senha: Annotated[str, StringConstraints(min_length=1)]

class LoginIn(BaseModel):
    email: TextoCurto
    senha: Annotated[str, StringConstraints(min_length=1)]

class LeituraIn(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    ph: float
    temperatura: float
    turbidez: float
    cloro: float
    od: float
    condutividade: float
    tds: float

    @field_validator(*INDICADORES, mode="before")
    @classmethod
    def rejeitar_booleanos(cls, v):
        if isinstance(v, bool):
            raise ValueError("valor numérico esperado")
        return v

class TokenOut(BaseModel):
    token: str

class VereditoOut(BaseModel):
    status: str
    indicadores_fora: List[str]

class RegistroOut(BaseModel):
    id: int
    ph: float
    temperatura: float
    turbidez: float
    cloro: float
    od: float
    condutividade: float
    tds: float
    status_geral: str
    indicadores_fora: List[str]
    criado_em: str

# --- DEPENDÊNCIAS ---
def get_repositorio(request: Request):
    return request.app.state.repositorio

def get_auth(request: Request) -> GerenciadorAuth:
    return request.app.state.auth

def get_usuario_atual(token: str = Depends(oauth2_scheme), auth: GerenciadorAuth = Depends(get_auth)) -> int:
    try:
        return auth.verificar_token(token)
    except TokenInvalido:
        raise HTTPException(status_code=401, detail="Token inválido ou expirado.", headers={"WWW-Authenticate": "Bearer"})

router = APIRouter(prefix="/api")

# --- ENDPOINTS DE AUTENTICAÇÃO ---
@router.post("/cadastro", status_code=201)
def cadastrar_usuario(dados: CadastroIn, repositorio=Depends(get_repositorio), auth: GerenciadorAuth = Depends(get_auth)):
    senha_hash = auth.hash_senha(dados.senha)
    try:
        novo_id = repositorio.criar_usuario(dados.nome_usuario, dados.email, senha_hash)
    except EmailJaCadastrado:
        logging.info(f"Cadastro recusado: e-mail já cadastrado ({dados.email}).")
        raise HTTPException(status_code=400, detail="E-mail já cadastrado.")
    except Exception:
        logging.error("Erro ao cadastrar usuário.", exc_info=True)
        raise HTTPException(status_code=500, detail=ERRO_INTERNO)
    logging.info(f"Usuário cadastrado: id={novo_id}")
    return {"mensagem": "Usuário cadastrado com sucesso.", "id": novo_id}

@router.post("/login", response_model=TokenOut)
def login(dados: LoginIn, repositorio=Depends(get_repositorio), auth: GerenciadorAuth = Depends(get_auth)):
    try:
        usuario = repositorio.buscar_usuario_por_email(dados.email)
    except Exception:
        logging.error("Erro ao buscar usuário para login.", exc_info=True)
        raise HTTPException(status_code=500, detail=ERRO_INTERNO)
    if usuario is None or not auth.verificar_senha(dados.senha, usuario.senha):
        logging.info("Tentativa de login inválida.")
        raise HTTPException(status_code=400, detail="E-mail ou senha inválidos.")
    return {"token": auth.emitir_token(usuario.id)}

# --- ENDPOINTS PROTEGIDOS ---
@router.post("/processar", response_model=VereditoOut)
def processar_leitura(dados: LeituraIn, usuario_id: int = Depends(get_usuario_atual), repositorio=Depends(get_repositorio)):
    leitura = Leitura(**dados.model_dump())
    veredito = avaliar(leitura)
    try:
        registro_id = repositorio.inserir_historico(usuario_id, leitura, veredito, datetime.now(timezone.utc))
    except Exception:
        logging.error(f"Erro ao gravar histórico do usuário {usuario_id}.", exc_info=True)
        raise HTTPException(status_code=500, detail=ERRO_INTERNO)
    logging.info(f"Leitura {registro_id} do usuário {usuario_id}: {veredito.status} ({len(veredito.indicadores_fora)} fora)")
    return {"status": veredito.status, "indicadores_fora": list(veredito.indicadores_fora)}

@router.get("/historico", response_model=List[RegistroOut])
def listar_historico(usuario_id: int = Depends(get_usuario_atual), repositorio=Depends(get_repositorio)):
    try:
        registros = repositorio.listar_historico(usuario_id)
    except Exception:
        logging.error(f"Erro ao listar histórico do usuário {usuario_id}.", exc_info=True)
        raise HTTPException(status_code=500, detail=ERRO_INTERNO)
    return [registro.as_dict() for registro in registros]

# --- TRATAMENTO DE ERROS ---
async def erro_de_validacao(request: Request, exc: RequestValidationError):
    campos = []
    for erro in exc.errors():
        loc = [str(p) for p in erro.get("loc", ()) if p != "body"]
        if loc and loc[-1] not in campos:
            campos.append(loc[-1])
    if campos:
        detalhe = f"Campos obrigatórios ausentes ou inválidos: {', '.join(campos)}."
    else:
        detalhe = "Corpo da requisição inválido."
    return JSONResponse(status_code=400, content={"detail": detalhe})

# --- CRIAÇÃO DA APLICAÇÃO ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info(f"--- Potabilidade API {config.VERSAO} iniciando ---")
    if app.state.auth is None:
        app.state.auth = GerenciadorAuth()
    app.state.repositorio.abrir()
    try:
        yield
    finally:
        app.state.repositorio.fechar()
        logging.info("--- Potabilidade API encerrada ---")

def create_app(repositorio=None, auth: GerenciadorAuth = None) -> FastAPI:
    """
    Monta a aplicação. Sem argumentos usa o PostgreSQL e a SECRET_KEY do ambiente;
    os testes injetam um repositório em memória e um GerenciadorAuth próprio.
    """
    app = FastAPI(title="Potabilidade API", version=config.VERSAO, lifespan=lifespan)
    app.state.repositorio = repositorio if repositorio is not None else RepositorioPostgres()
    app.state.auth = auth

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, erro_de_validacao)
    app.include_router(router)

    @app.get("/")
    def root():
        return {"mensagem": "API funcionando!"}

    return app

app = create_app()

# Execução direta
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
