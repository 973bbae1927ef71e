from .data_models import Leitura, Veredito, STATUS_DENTRO, STATUS_FORA
from .avaliacao import avaliar, avaliar_dict
