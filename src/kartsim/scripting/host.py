"""
Script hosts run one control script invocation per turn.

A control script is Python source that defines a zero-argument
`take_your_turn()` function. While it runs, the global `race` is bound to a
`ScriptBridge` for the active car.
"""

from __future__ import annotations

import builtins
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable

from kartsim.scripting.bridge import ScriptBridge
from kartsim.scripting.messages import TurnResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import CodeType, TracebackType

    from kartsim.scripting.messages import TurnRequest

ENTRY_POINT = "take_your_turn"
BRIDGE_GLOBAL = "race"
ALLOWED_MODULES = frozenset({"math", "random"})

_SAFE_BUILTIN_NAMES = (
    "abs",
    "all",
    "any",
    "bool",
    "dict",
    "divmod",
    "enumerate",
    "filter",
    "float",
    "int",
    "isinstance",
    "len",
    "list",
    "map",
    "max",
    "min",
    "pow",
    "print",
    "range",
    "reversed",
    "round",
    "set",
    "sorted",
    "str",
    "sum",
    "tuple",
    "zip",
    "ArithmeticError",
    "Exception",
    "IndexError",
    "KeyError",
    "TypeError",
    "ValueError",
    "ZeroDivisionError",
)


def _restricted_import(
    name: str,
    globals: Mapping[str, object] | None = None,  # noqa: A002
    locals: Mapping[str, object] | None = None,  # noqa: A002
    fromlist: tuple[str, ...] = (),
    level: int = 0,
) -> Any:
    if level != 0 or name.partition(".")[0] not in ALLOWED_MODULES:
        msg = f"import of {name!r} is not allowed in race scripts"
        raise ImportError(msg)
    return builtins.__import__(name, globals, locals, fromlist, level)


SAFE_BUILTINS: dict[str, object] = {
    name: getattr(builtins, name) for name in _SAFE_BUILTIN_NAMES
} | {"__import__": _restricted_import, "__build_class__": builtins.__build_class__}


def format_script_error(exc: BaseException) -> str:
    return f"{exc.__class__.__name__}: {exc}"


def invoke_with_bridge(
    request: TurnRequest,
    call: Callable[[ScriptBridge], object],
) -> TurnResponse:
    """
    Run `call` against a fresh bridge and collect its purchases.

    Anything raised by the script, `BaseException` subclasses included, turns
    into a failed response; the purchases it made before failing are dropped.
    """
    bridge = ScriptBridge(request)
    try:
        call(bridge)
    except BaseException as e:  # noqa: BLE001
        return bridge.to_response(error=format_script_error(e))
    finally:
        bridge.close()
    return bridge.to_response()


@runtime_checkable
class ScriptHost(Protocol):
    """Anything that can run a car's script for one turn."""

    def invoke(self, script: str, request: TurnRequest) -> TurnResponse: ...


class PythonScriptHost:
    """Runs Python control scripts in a restricted namespace on a worker thread."""

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="kartsim-script",
        )
        self._compiled: dict[str, CodeType] = {}

    def invoke(self, script: str, request: TurnRequest) -> TurnResponse:
        # Blocks until the script returns; turns never overlap.
        return self._executor.submit(self._run, script, request).result()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _compile(self, script: str) -> CodeType:
        code = self._compiled.get(script)
        if code is None:
            code = compile(script, "<race-script>", "exec")
            self._compiled[script] = code
        return code

    def _run(self, script: str, request: TurnRequest) -> TurnResponse:
        def call(bridge: ScriptBridge) -> None:
            namespace: dict[str, object] = {
                "__builtins__": SAFE_BUILTINS,
                "__name__": "race_script",
                BRIDGE_GLOBAL: bridge,
            }
            exec(self._compile(script), namespace)  # noqa: S102
            entry = namespace.get(ENTRY_POINT)
            if not callable(entry):
                msg = f"script does not define {ENTRY_POINT}()"
                raise LookupError(msg)
            entry()

        return invoke_with_bridge(request, call)


class CallableScriptHost:
    """
    Host for strategies written as plain Python callables.

    The car's `script` is used as a key into `strategies`; each strategy is
    called with the bridge.
    """

    def __init__(self, strategies: Mapping[str, Callable[[ScriptBridge], object]]):
        self.strategies = dict(strategies)

    def invoke(self, script: str, request: TurnRequest) -> TurnResponse:
        strategy = self.strategies.get(script)
        if strategy is None:
            msg = f"LookupError: no strategy registered for {script!r}"
            return TurnResponse(error=msg)
        return invoke_with_bridge(request, strategy)
