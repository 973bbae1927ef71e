# potabilidade/auth_manager.py

import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHash, VerificationError
from jose import JWTError, jwt

from potabilidade import config

class TokenInvalido(Exception):
    """Token ausente, expirado, com assinatura inválida ou sem 'sub'."""

class GerenciadorAuth:
    """Hash de senhas (Argon2) e emissão/validação de tokens JWT."""

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None,
                 expire_minutes: Optional[int] = None):
        self.secret_key = secret_key or config.SECRET_KEY
        if not self.secret_key:
            raise ValueError("SECRET_KEY não configurada: defina a variável de ambiente SECRET_KEY.")
        self.algorithm = algorithm or config.ALGORITHM
        self.expire_minutes = expire_minutes if expire_minutes is not None else config.ACCESS_TOKEN_EXPIRE_MINUTES
        self._ph = PasswordHasher()

    # --- SENHAS ---
    def hash_senha(self, senha: str) -> str:
        return self._ph.hash(senha)

    def verificar_senha(self, senha: str, senha_hash: str) -> bool:
        """Verifica uma senha com Argon2; qualquer divergência devolve False."""
        try:
            return self._ph.verify(senha_hash, senha)
        except (VerifyMismatchError, InvalidHash):
            return False
        except VerificationError as e:
            logging.error(f"Erro inesperado na verificação da senha: {e}")
            return False

    # --- TOKENS ---
    def emitir_token(self, usuario_id: int, agora: Optional[datetime] = None) -> str:
        agora = agora or datetime.now(timezone.utc)
        expire = agora + timedelta(minutes=self.expire_minutes)
        # 'sub' precisa ser string para o python-jose
        to_encode = {"sub": str(usuario_id), "iat": agora, "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verificar_token(self, token: str) -> int:
        """Devolve o id do usuário dono do token ou levanta TokenInvalido."""
        if not token:
            raise TokenInvalido("Token ausente.")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise TokenInvalido(str(e)) from e
        sub = payload.get("sub")
        try:
            return int(sub)
        except (TypeError, ValueError):
            raise TokenInvalido("Token sem identificação de usuário.")
