"""Command line script for MediFlow."""
import importlib
import os
import sys
from argparse import ArgumentParser, Namespace, RawTextHelpFormatter
from pathlib import Path
from textwrap import dedent
from typing import Optional, Sequence

from mediflow.config import MediFlowConfig
from mediflow.core import MediFlowError, RequestContract
from mediflow.registry import HandlerRegistry
from mediflow.utils import Fore, bold, fg

YELLOW, CYAN, RED, GREEN, WHITE = (
    Fore.YELLOW,
    Fore.CYAN,
    Fore.RED,
    Fore.GREEN,
    Fore.WHITE,
)
WHITE_EX, CYAN_EX = Fore.LIGHTWHITE_EX, Fore.LIGHTCYAN_EX

DEFAULT_REGISTRY_ATTR = "registry"


class MediFlowCommand:
    def __init__(self, path: Optional[Path] = None):
        """Constructor.

        현재 경로(또는 `path`)의 `setup.cfg` 에서 ``[mediflow]`` 설정을 읽습니다.
        """
        self.path = path or Path(os.path.abspath("."))
        self.config = MediFlowConfig.load_from_config(self.path)

    def banner(self, msg, icon=""):
        """배너를 표시합니다."""
        if os.name == "nt":
            icon = ""
        print("─" * 60)
        print(f"{icon} {msg}".strip())
        print("─" * 60)

    def info(self):
        """MediFlow 설정 정보를 출력합니다."""
        dot = bold("-", YELLOW)
        self.banner(f"{bold('MediFlow Information')}", icon="💡")
        source = "defaults" if self.config.is_implicit else "setup.cfg"
        print(dot, fg("Name", CYAN), "          :", fg(self.config.name, WHITE_EX))
        print(dot, fg("Config", CYAN), "        :", fg(source, WHITE_EX))
        print(dot, fg("Log level", CYAN), "     :", fg(self.config.log_level, WHITE_EX))
        print(
            dot,
            fg("Request policy", CYAN),
            ":",
            fg(self.config.request_policy, WHITE_EX),
        )
        print(
            dot,
            fg("Freeze", CYAN),
            "        :",
            fg(self.config.freeze_on_start, WHITE_EX),
        )
        print(dot, fg("Handlers", CYAN), "      :", fg(self.config.handlers, WHITE_EX))

    def load_registry(self, target: Optional[str] = None) -> HandlerRegistry:
        """``module[:attr]`` 위치의 레지스트리를 로드합니다.

        `target` 이 없으면 설정의 `handlers` 값을 사용합니다.
        """
        target = target or self.config.handlers
        if not target:
            raise MediFlowError(
                "no handler registry given, pass `module[:attr]` "
                "or set `handlers` in [mediflow] section of setup.cfg"
            )

        module_name, _, attr = target.partition(":")
        attr = attr or DEFAULT_REGISTRY_ATTR

        if str(self.path) not in sys.path:
            sys.path.insert(0, str(self.path))

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise MediFlowError(f"cannot import module {module_name!r}: {e}") from e

        registry = getattr(module, attr, None)
        if not isinstance(registry, HandlerRegistry):
            raise MediFlowError(f"{module_name}:{attr} is not a HandlerRegistry")
        return registry

    def handlers(self, target: Optional[str] = None):
        """등록된 핸들러 목록을 출력합니다.

        요청 핸들러를 먼저, 알림 핸들러는 실행 순서대로 출력합니다.
        """
        registry = self.load_registry(target)
        contracts = registry.contracts()
        bullet = bold("✓" if os.name != "nt" else "v", GREEN)

        self.banner(bold("MediFlow Handlers"), icon="📮")
        for contract, names in contracts.items():
            kind = "request" if isinstance(contract, RequestContract) else "notification"
            print(bullet, fg(kind, CYAN), bold(str(contract), WHITE_EX))
            for i, name in enumerate(names, start=1):
                print(f"    {fg(str(i) + '.', YELLOW)} {name}")

        print(
            bold(f"{len(contracts)}", YELLOW),
            "contract(s) registered.",
        )
        return contracts


class MediFlowCommandParser:
    """콘솔 커맨드 명령어 파서.

    실제 작업은 `MediFlowCommand` 객체에 위임합니다.
    """

    def __init__(self, path: Optional[Path] = None):
        """기본 생성자."""
        self.parser = ArgumentParser(
            "mediflow",
            description=f"✨ {bold('MediFlow')} : {fg('command line utility', CYAN_EX)}",
        )
        self._subparsers = self.parser.add_subparsers(dest="command")
        self._path = path
        self._cmd: Optional[MediFlowCommand] = None

        # init subparsers
        for handler in [
            MediFlowCommand.info,
            MediFlowCommand.handlers,
        ]:
            command = handler.__name__
            # 핸들러 함수의 주석을 커맨드라인 도움말로 변환하기 위한 작업입니다.
            doc = None
            if handler.__doc__:
                lines = handler.__doc__.splitlines()
                doc = lines[0] + "\n" + dedent("\n".join(lines[1:]))
            parser = self._subparsers.add_parser(
                command,
                description=doc,
                formatter_class=RawTextHelpFormatter,
            )
            if command == "handlers":
                parser.add_argument(
                    "target",
                    metavar="module[:attr]",
                    nargs="?",
                    help="레지스트리 위치 (기본 attr: registry)",
                )

    def parse_args(self, args: Sequence[str]) -> int:
        """콘솔 명령어를 해석해서 적절한 작업을 수행합니다."""
        if not args:
            self.parser.print_help()
            return 0

        ns = self.parser.parse_args(args)
        try:
            self._cmd = MediFlowCommand(self._path)
            if hasattr(self, ns.command):
                # 커맨드 명령어와 동일한 이름의 메소드가 파서 클래스에 있으면
                # 그 메소드를 호출해서 적당한 처리 후 실제 메소드를 호출합니다.
                getattr(self, ns.command)(ns)
            else:
                getattr(self._cmd, ns.command)()
        except MediFlowError as e:
            print(
                f"{bold('MediFlow ERROR:', RED)} {fg(e.message, YELLOW)}",
                file=sys.stderr,
            )
            return 1
        return 0

    def handlers(self, ns: Namespace):
        """`handlers` 명령어 처리."""
        assert self._cmd
        self._cmd.handlers(ns.target)


def console_main():
    parser = MediFlowCommandParser()
    sys.exit(parser.parse_args(sys.argv[1:]))


if __name__ == "__main__":
    console_main()
