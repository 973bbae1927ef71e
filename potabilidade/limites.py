# potabilidade/limites.py
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class Faixa:
    """
    Faixa aceitável de um indicador. Um limite ausente (None) significa
    que aquele lado não é verificado.
    """
    minimo: Optional[float] = None
    maximo: Optional[float] = None
    minimo_inclusivo: bool = True
    maximo_inclusivo: bool = True

    def contem(self, valor: float) -> bool:
        if self.minimo is not None:
            if self.minimo_inclusivo and not valor >= self.minimo:
                return False
            if not self.minimo_inclusivo and not valor > self.minimo:
                return False
        if self.maximo is not None:
            if self.maximo_inclusivo and not valor <= self.maximo:
                return False
            if not self.maximo_inclusivo and not valor < self.maximo:
                return False
        return True

@dataclass(frozen=True)
class Limite:
    indicador: str
    faixa: Faixa
    mensagem: str

# --- TABELA DE LIMITES DE POTABILIDADE ---
# A ordem desta tupla é a ordem das mensagens em indicadores_fora.
# ATENÇÃO: 'od' é um limite SUPERIOR (<= 5), como na última revisão da regra.
# Não inverter para mínimo sem confirmação do responsável pelo produto.
LIMITES = (
    Limite("ph", Faixa(6.5, 8.5), "pH fora dos padrões"),
    Limite("temperatura", Faixa(5, 20), "Temperatura fora dos padrões"),
    Limite("turbidez", Faixa(1, 5, minimo_inclusivo=False), "Turbidez fora dos padrões"),
    Limite("cloro", Faixa(0.2, 2.0), "Cloro fora dos padrões"),
    Limite("od", Faixa(maximo=5), "Oxigênio dissolvido fora dos padrões"),
    Limite("condutividade", Faixa(50, 500), "Condutividade fora dos padrões"),
    Limite("tds", Faixa(maximo=500, maximo_inclusivo=False), "TDS fora dos padrões"),
)

LIMITES_POR_INDICADOR = {limite.indicador: limite for limite in LIMITES}
