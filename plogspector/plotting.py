"""
Etapa de plot executada ao final do comando stat.

Por padrão desenha, com matplotlib, um histograma por métrica de duração do
CSV gerado. Se um script externo for configurado, ele é chamado com
`--dir <work_dir> --data <data_name>`. Falhas são reportadas e não invalidam o
CSV já gravado.
"""
import os
import csv
import math
import logging
import subprocess
import matplotlib
import matplotlib.pyplot as plt
from typing import Dict, List, Optional, Sequence
from .metrics import DURATION_METRICS
matplotlib.use('Agg')
logger = logging.getLogger(__name__)
PLOT_COLOR = '#059669'
def read_metric_columns(csv_path: str, columns: Sequence[str]) -> Dict[str, List[float]]:
    data: Dict[str, List[float]] = {c: [] for c in columns}
    with open(csv_path, 'r', encoding='utf-8', newline='') as f:
        for row in csv.DictReader(f):
            for c in columns:
                try:
                    data[c].append(float(row[c]))
                except (KeyError, TypeError, ValueError):
                    pass
    return data
def plot_metrics(csv_path: str, png_path: str, columns: Sequence[str] = DURATION_METRICS, title: str = '') -> Optional[str]:
    data = {c: v for c, v in read_metric_columns(csv_path, columns).items() if v}
    if not data:
        logger.warning("No metric rows in %s, nothing to plot", csv_path)
        return None
    try:
        plt.style.use('seaborn-v0_8-whitegrid')
    except OSError:
        plt.style.use('ggplot')
    ncols = 2 if len(data) > 1 else 1
    nrows = math.ceil(len(data) / ncols)
    fig, axes = plt.subplots(nrows, ncols, figsize=(10, 2.8 * nrows), dpi=90, squeeze=False)
    for ax, (name, values) in zip(axes.flat, data.items()):
        ax.hist(values, bins=min(30, max(5, len(values))), color=PLOT_COLOR, alpha=0.8)
        mean = sum(values) / len(values)
        ax.axvline(x=mean, color='#E67E22', linestyle='--', linewidth=1, label=f'Avg: {mean:.3f}s')
        ax.axvline(x=max(values), color='#D9534F', linestyle=':', linewidth=1, label=f'Max: {max(values):.3f}s')
        ax.set_title(name, fontsize=10)
        ax.set_xlabel('Time (s)', fontsize=9)
        ax.legend(fontsize='small')
        ax.tick_params(axis='both', which='major', labelsize=8)
    for ax in list(axes.flat)[len(data):]:
        ax.set_visible(False)
    if title:
        fig.suptitle(title)
    fig.tight_layout(pad=0.5)
    fig.savefig(png_path, format='png')
    plt.close(fig)
    return png_path
def run_plot(data_name: str, work_dir: str, script: Optional[str] = None) -> Optional[str]:
    """
    Gera o artefato de plot do conjunto <data_name>.

    Args:
        data_name (str): Nome do conjunto (o CSV é <work_dir>/<data_name>.csv)
        work_dir (str): Diretório de trabalho
        script (Optional[str]): Script externo; se None usa matplotlib

    Returns:
        Optional[str]: Caminho do PNG gerado, a saída do script, ou None em caso de falha
    """
    if script:
        cmdline = [script, '--dir', os.path.abspath(work_dir), '--data', data_name]
        logger.info("Running plot script: %s", ' '.join(cmdline))
        try:
            proc = subprocess.run(cmdline, capture_output=True, text=True, check=False)
        except OSError as e:
            logger.error("Could not run plot script %s: %s", script, e)
            return None
        if proc.stderr:
            logger.warning("%s", proc.stderr.rstrip())
        if proc.returncode != 0:
            logger.error("Plot script exited with status %d", proc.returncode)
            return None
        return proc.stdout
    csv_path = os.path.join(work_dir, f"{data_name}.csv")
    png_path = os.path.join(work_dir, f"{data_name}.png")
    try:
        result = plot_metrics(csv_path, png_path, title=data_name)
    except Exception as e:
        logger.warning("Could not generate metrics plot. Reason: %s", e)
        return None
    if result:
        logger.info("Plot written to %s", result)
    return result
