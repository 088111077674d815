import logging
from typing import Union

from uvicorn.logging import DefaultFormatter


def get_logger(name: str, log_level: Union[int, str] = logging.INFO):
    """`mediflow.*` 로거를 리턴합니다.

    핸들러가 아직 없는 로거에만 uvicorn 의 컬러 포매터를 사용하는
    `StreamHandler` 를 붙이므로 여러 번 호출해도 로그가 중복 출력되지 않습니다.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(log_level)
        ch = logging.StreamHandler()
        ch.setFormatter(DefaultFormatter(fmt="%(levelprefix)s %(message)s"))
        logger.addHandler(ch)

    return logger


def set_log_level(log_level: Union[int, str], name: str = "mediflow"):
    """`name` 로거와 그 하위 로거들의 로그 레벨을 바꿉니다."""
    root = logging.getLogger(name)
    root.setLevel(log_level)
    for logger_name, logger in logging.root.manager.loggerDict.items():
        if logger_name.startswith(name + ".") and isinstance(logger, logging.Logger):
            logger.setLevel(log_level)
