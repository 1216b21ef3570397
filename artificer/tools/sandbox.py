"""In-process sandbox for generated tool source.

Source is compiled into a fresh namespace whose builtins are an
allow-list and whose ``import`` statement only reaches configured
standard-library modules.  The compiled unit registers its own tool
function through an injected hook: a call to ``__artificer_register__``
is appended to the parsed module, so a tool exists only if the module
itself binds the name.

Loading and invocation each run on a dedicated daemon thread under a
wall-clock timeout; ``async def`` tools get their own event loop on that
thread.  Tool threads never come from the event loop's default executor,
so store I/O is not starved by tools that overrun.  At most
``max_threads`` tool threads may be alive at once.

This is a damage limiter, not an isolation boundary.  CPython cannot
kill a thread, so a tool that overruns keeps its thread (and its slot)
until it returns, and restricted builtins do not stop a determined
escape.  CPU and memory limits need a subprocess or container.
"""

from __future__ import annotations

import ast
import asyncio
import builtins
import inspect
import threading
from concurrent.futures import Future
from typing import Any, Callable

from artificer.errors import ExecutionError

REGISTER_HOOK = "__artificer_register__"

DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_THREADS = 8

_SAFE_BUILTIN_NAMES = (
    "abs", "all", "any", "ascii", "bin", "bool", "bytes", "callable", "chr",
    "dict", "divmod", "enumerate", "filter", "float", "format", "frozenset",
    "hasattr", "hash", "hex", "int", "isinstance", "issubclass", "iter", "len",
    "list", "map", "max", "min", "next", "oct", "ord", "pow", "range", "repr",
    "reversed", "round", "set", "slice", "sorted", "str", "sum", "tuple", "zip",
    "None", "True", "False",
    "ArithmeticError", "AssertionError", "AttributeError", "Exception",
    "IndexError", "KeyError", "LookupError", "NotImplementedError",
    "OverflowError", "RuntimeError", "StopIteration", "TypeError",
    "ValueError", "ZeroDivisionError",
)


def _guarded_import(allowed_modules: frozenset[str]) -> Callable[..., Any]:
    def _import(name: str, globals=None, locals=None, fromlist=(), level=0):
        root = name.split(".")[0]
        if level != 0 or root not in allowed_modules:
            raise ImportError(f"import of '{name}' is not allowed in tools")
        return builtins.__import__(name, globals, locals, fromlist, level)

    return _import


def safe_builtins(allowed_modules: list[str] | None = None) -> dict[str, Any]:
    """Return the builtins mapping exposed to tool code."""
    table = {name: getattr(builtins, name) for name in _SAFE_BUILTIN_NAMES}
    table["__import__"] = _guarded_import(frozenset(allowed_modules or ()))
    # class statements inside tool code need __build_class__
    table["__build_class__"] = builtins.__build_class__
    return table


def load_tool_function(
    source: str,
    name: str,
    allowed_modules: list[str] | None = None,
) -> Callable[..., Any]:
    """Compile *source* and return the function it registers as *name*.

    Raises ``ExecutionError`` if the source does not compile, fails while
    its module body runs, or never binds a callable called *name*.
    """
    filename = f"<tool:{name}>"
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError as exc:
        raise ExecutionError(f"stored source does not compile: {exc}") from exc

    tree.body.append(
        ast.Expr(
            ast.Call(
                func=ast.Name(id=REGISTER_HOOK, ctx=ast.Load()),
                args=[ast.Name(id=name, ctx=ast.Load())],
                keywords=[],
            )
        )
    )
    ast.fix_missing_locations(tree)

    registered: dict[str, Any] = {}

    def _register(fn: Any) -> None:
        registered[name] = fn

    namespace: dict[str, Any] = {
        "__builtins__": safe_builtins(allowed_modules),
        "__name__": f"artificer_tool_{name}",
        REGISTER_HOOK: _register,
    }

    try:
        code = compile(tree, filename, "exec")
        exec(code, namespace)  # noqa: S102
    except NameError as exc:
        if registered or exc.name != name:
            raise ExecutionError(f"tool module failed to load: {exc}") from exc
        raise ExecutionError(f"tool code did not define function '{name}'") from exc
    except Exception as exc:
        raise ExecutionError(f"tool module failed to load: {exc}") from exc

    fn = registered.get(name)
    if not callable(fn):
        raise ExecutionError(f"tool code did not define function '{name}'")
    return fn




class ToolThreads:
    """Starts tool work on daemon threads, at most ``limit`` alive at once.

    A slot is held until the thread's work returns, even after the caller
    has given up waiting on it.
    """

    def __init__(self, limit: int = DEFAULT_MAX_THREADS) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._slots = threading.BoundedSemaphore(limit)

    def submit(self, func: Callable[..., Any], *args: Any) -> Future:
        if not self._slots.acquire(blocking=False):
            raise ExecutionError(f"too many tools still running (limit {self.limit})")
        future: Future = Future()
        thread = threading.Thread(
            target=self._work, args=(future, func, args), name="artificer-tool", daemon=True
        )
        try:
            thread.start()
        except RuntimeError:
            self._slots.release()
            raise
        return future

    def _work(self, future: Future, func: Callable[..., Any], args: tuple) -> None:
        if not future.set_running_or_notify_cancel():
            self._slots.release()
            return
        error: BaseException | None = None
        result: Any = None
        try:
            result = func(*args)
        except Exception as exc:
            error = exc
        except BaseException as exc:
            error = ExecutionError(f"tool raised {type(exc).__name__}: {exc}")
        # free the slot before waking the waiter so it can submit again
        self._slots.release()
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)


_default_threads = ToolThreads()


def _run_coroutine(fn: Callable[..., Any], params: dict[str, Any]) -> Any:
    return asyncio.run(fn(params))


async def _await_thread(threads: ToolThreads, timeout: float, func: Callable[..., Any], *args: Any) -> Any:
    return await asyncio.wait_for(asyncio.wrap_future(threads.submit(func, *args)), timeout)


async def run_tool_source(
    source: str,
    name: str,
    params: dict[str, Any],
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    allowed_modules: list[str] | None = None,
    threads: ToolThreads | None = None,
) -> Any:
    """Load ``source`` and call its ``name`` function with ``params``.

    Raises ExecutionError on load failure, timeout, a full thread pool, or
    anything the tool raises that is not an ordinary ``Exception``.  Other
    exceptions raised by the tool propagate unchanged.
    """
    threads = threads or _default_threads
    try:
        try:
            fn = await _await_thread(threads, timeout, load_tool_function, source, name, allowed_modules)
        except asyncio.TimeoutError as exc:
            raise ExecutionError(f"loading timed out after {timeout:g}s") from exc
        try:
            if inspect.iscoroutinefunction(fn):
                return await _await_thread(threads, timeout, _run_coroutine, fn, params)
            return await _await_thread(threads, timeout, fn, params)
        except asyncio.TimeoutError as exc:
            raise ExecutionError(f"timed out after {timeout:g}s") from exc
    except asyncio.CancelledError:
        raise
    except Exception:
        raise
    except BaseException as exc:
        raise ExecutionError(f"tool raised {type(exc).__name__}: {exc}") from exc
