"""Configuração explícita de uma execução do PLOGspector."""
import os
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from .dialects import DEFAULT_DIALECT
DEFAULT_DATA_NAME = 'stat'
@dataclass(frozen=True)
class AnalyzerConfig:
    """
    Parâmetros passados pelo ponto de entrada para todo o pipeline.

    Attributes:
        dialect (str): Nome do dialeto de firmware (ver dialects.DIALECTS)
        data_name (str): Nome do conjunto de dados; gera <data_name>.csv e <data_name>.png
        work_dir (str): Diretório onde o CSV e o gráfico são gravados
        plot (bool): Gera o gráfico ao final
        plot_script (Optional[str]): Script externo de plot; None usa matplotlib
        max_lines (Optional[int]): Lê no máximo este número de linhas
        ignore (Tuple[int, ...]): Ciclos (seqno) ignorados na saída
        cycles (Tuple[int, ...]): Ciclos escolhidos para o trace de IO (vazio = todos)
        signals (Tuple[str, ...]): Nomes dos sinais do trace de IO
        io_map (Optional[str]): Arquivo JSON com o catálogo de sinais
    """
    dialect: str = DEFAULT_DIALECT
    data_name: str = DEFAULT_DATA_NAME
    work_dir: str = '.'
    plot: bool = True
    plot_script: Optional[str] = None
    max_lines: Optional[int] = None
    ignore: Tuple[int, ...] = ()
    cycles: Tuple[int, ...] = ()
    signals: Tuple[str, ...] = ()
    io_map: Optional[str] = None
    verbose: bool = False
    @property
    def csv_path(self) -> str:
        return os.path.join(self.work_dir, f"{self.data_name}.csv")
def load_config_defaults(config_path: str) -> Dict[str, Any]:
    """
    Lê um arquivo JSON de configuração cujas chaves viram defaults do argparse.

    Raises:
        FileNotFoundError: Se o arquivo não existir
        ValueError: Se o JSON for inválido ou não for um objeto
    """
    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Syntax error in JSON configuration file: {e}") from e
    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration file {config_path} must contain a JSON object.")
    return {k.replace('-', '_'): v for k, v in config_data.items()}
