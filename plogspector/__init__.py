"""
PLOGspector - Analisador de logs de ciclos de energia de firmware embarcado.

Funcionalidades principais:
- Decodificação das linhas do log capturado pela porta serial
- Segmentação do log em ciclos de perda/retorno de energia
- Verificação de saúde de cada ciclo antes de confiar nos seus dados
- Cálculo de métricas de tempo (capacitor, backup, ponte, motivo de shutdown...)
- Exportação das métricas em CSV e gráfico com matplotlib
- Trace de diagnóstico de sinais GPIO nomeados ao longo de um ciclo
"""
SCRIPT_NAME = "PLOGspector"
SCRIPT_VERSION = "0.2.0"
