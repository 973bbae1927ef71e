# potabilidade/data_models.py
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional, Tuple

STATUS_DENTRO = "Dentro dos padrões de potabilidade"
STATUS_FORA = "Fora dos padrões de potabilidade"

# Ordem fixa dos indicadores (também a ordem das mensagens no veredito)
INDICADORES = ("ph", "temperatura", "turbidez", "cloro", "od", "condutividade", "tds")

@dataclass(frozen=True)
class Leitura:
    ph: float
    temperatura: float    # °C
    turbidez: float       # NTU
    cloro: float          # mg/L
    od: float             # oxigênio dissolvido, mg/L
    condutividade: float  # µS/cm
    tds: float            # mg/L

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

@dataclass(frozen=True)
class Veredito:
    status: str
    indicadores_fora: Tuple[str, ...] = ()

    @property
    def dentro_dos_padroes(self) -> bool:
        return not self.indicadores_fora

@dataclass(frozen=True)
class Usuario:
    id: int
    nome_usuario: str
    email: str
    senha: str  # hash argon2, nunca o texto puro
    criado_em: Optional[datetime] = None

@dataclass(frozen=True)
class RegistroHistorico:
    id: int
    usuario_id: int
    leitura: Leitura
    veredito: Veredito
    criado_em: datetime

    def as_dict(self) -> dict:
        """Formato devolvido por GET /api/historico."""
        dados = {"id": self.id}
        dados.update(self.leitura.as_dict())
        dados["status_geral"] = self.veredito.status
        dados["indicadores_fora"] = list(self.veredito.indicadores_fora)
        dados["criado_em"] = self.criado_em.isoformat()
        return dados
