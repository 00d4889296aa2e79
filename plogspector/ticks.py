"""
Aritmética do contador de ticks do dispositivo.

O contador é um registrador de 32 bits em milissegundos que dá a volta a cada
~49,7 dias. A diferença é calculada em módulo 2^32 e interpretada como um
valor com sinal no intervalo (-2^31, 2^31].
"""
TICK_MODULUS = 2 ** 32
TICK_HALF_PERIOD = 2 ** 31
TICK_MASK = TICK_MODULUS - 1
TICKS_PER_SECOND = 1000
def tick_diff(start: int, end: int) -> int:
    """
    Calcula end - start considerando a volta do contador.

    Args:
        start (int): Amostra inicial do contador
        end (int): Amostra final do contador

    Returns:
        int: Diferença com sinal, em ticks

    Exemplo:
        tick_diff(4294967290, 5) == 11
    """
    n = (end - start) % TICK_MODULUS
    if n > TICK_HALF_PERIOD:
        n -= TICK_MODULUS
    return n
def ticks_to_seconds(ticks: int) -> float:
    return ticks / TICKS_PER_SECOND
def seconds_between(start: int, end: int) -> float:
    return ticks_to_seconds(tick_diff(start, end))
