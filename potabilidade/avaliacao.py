# potabilidade/avaliacao.py
from typing import Mapping

from .data_models import Leitura, Veredito, STATUS_DENTRO, STATUS_FORA, INDICADORES
from .limites import LIMITES

def avaliar(leitura: Leitura) -> Veredito:
    """
    Classifica uma leitura segundo a tabela de limites.
    Todos os indicadores são verificados (sem interrupção na primeira falha)
    e as mensagens seguem a ordem fixa de LIMITES.
    """
    fora = tuple(
        limite.mensagem
        for limite in LIMITES
        if not limite.faixa.contem(getattr(leitura, limite.indicador))
    )
    status = STATUS_FORA if fora else STATUS_DENTRO
    return Veredito(status=status, indicadores_fora=fora)

def avaliar_dict(dados: Mapping[str, float]) -> Veredito:
    """Atalho: monta a Leitura a partir de um dicionário com as sete chaves."""
    return avaliar(Leitura(**{nome: float(dados[nome]) for nome in INDICADORES}))
