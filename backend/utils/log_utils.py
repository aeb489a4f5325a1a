import logging
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_logger(name: str) -> logging.Logger:
    """
    Retorna um logger nomeado com saída no console.
    Não duplica handlers quando chamado mais de uma vez para o mesmo nome.
    """
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL.upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(handler)
    return logger
