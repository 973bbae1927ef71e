from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from potabilidade.auth_manager import GerenciadorAuth, TokenInvalido
from tests.conftest import SECRET_DE_TESTE


def test_password_hash_is_not_plaintext_and_verifies(auth):
    senha_hash = auth.hash_senha("minha-senha")

    assert senha_hash != "minha-senha"
    assert senha_hash.startswith("$argon2")
    assert auth.verificar_senha("minha-senha", senha_hash)


def test_wrong_password_is_rejected(auth):
    senha_hash = auth.hash_senha("minha-senha")

    assert not auth.verificar_senha("outra-senha", senha_hash)


def test_invalid_hash_is_rejected(auth):
    assert not auth.verificar_senha("minha-senha", "isto-nao-e-um-hash")


def test_token_round_trip_returns_user_id(auth):
    token = auth.emitir_token(42)

    assert auth.verificar_token(token) == 42


def test_token_expires_after_one_day(auth):
    agora = datetime.now(timezone.utc)
    token = auth.emitir_token(7, agora=agora)
    payload = jwt.get_unverified_claims(token)

    assert payload["exp"] - payload["iat"] == 24 * 60 * 60


def test_expired_token_is_invalid(auth):
    token = auth.emitir_token(7, agora=datetime.now(timezone.utc) - timedelta(days=2))

    with pytest.raises(TokenInvalido):
        auth.verificar_token(token)


def test_token_signed_with_other_key_is_invalid(auth):
    outro = GerenciadorAuth(secret_key="outra-chave", algorithm="HS256")
    token = outro.emitir_token(1)

    with pytest.raises(TokenInvalido):
        auth.verificar_token(token)


def test_token_without_subject_is_invalid(auth):
    token = jwt.encode({"exp": datetime.now(timezone.utc) + timedelta(hours=1)}, SECRET_DE_TESTE, algorithm="HS256")

    with pytest.raises(TokenInvalido):
        auth.verificar_token(token)


def test_garbage_and_empty_tokens_are_invalid(auth):
    with pytest.raises(TokenInvalido):
        auth.verificar_token("nao.e.jwt")
    with pytest.raises(TokenInvalido):
        auth.verificar_token("")


def test_missing_secret_key_fails_fast(monkeypatch):
    monkeypatch.setattr("potabilidade.config.SECRET_KEY", None)

    with pytest.raises(ValueError, match="SECRET_KEY"):
        GerenciadorAuth()
