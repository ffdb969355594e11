"""Callable statement wrapper.

CallableInvoker sits on top of a driver call object. Binds and reads are
delegated to the driver; every bind is also reported to a BindObserver.
Planning happens in the constructor, and after execution the reconciled
output parameters are available as a synthetic single-row result whenever
the driver produced no native result set.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import sentry_sdk
import structlog

from proc_tool.core.exceptions import DriverError
from proc_tool.core.plan import build_call_plan
from proc_tool.core.projection import OutputResultProjector

if TYPE_CHECKING:
    from collections.abc import Sequence

    from proc_tool.core.catalog import Procedure, Session
    from proc_tool.core.models import DriverParameterInfo, OutputColumn
    from proc_tool.core.plan import CallPlan


class DriverCall(Protocol):
    """Prepared call as provided by a database driver."""

    def parameter_info(self) -> Sequence[DriverParameterInfo] | None:
        """Runtime parameter metadata; None or DriverError when unsupported."""
        ...

    def register_out_parameter(self, index: int, type_code: int) -> None: ...

    def set_object(self, key: int | str, value: Any) -> None: ...

    def set_null(self, key: int | str, type_code: int) -> None: ...

    def get_object(self, key: int | str) -> Any: ...

    def was_null(self) -> bool: ...

    def execute(self) -> bool:
        """Execute; True if a native result set was produced."""
        ...

    def get_result_set(self) -> Any | None: ...

    def more_results(self) -> bool: ...

    def close(self) -> None: ...


class BindObserver(Protocol):
    def on_bind(self, key: int | str, value: Any) -> None: ...


class LoggingBindObserver:
    """Traces parameter binds at debug level."""

    def on_bind(self, key: int | str, value: Any) -> None:
        structlog.get_logger().debug("parameter bound", key=key, value=repr(value)[:100])


class CallableInvoker:
    """A planned, executable call with output-parameter projection."""

    def __init__(
        self,
        session: Session,
        call: DriverCall,
        text: str | None,
        observer: BindObserver | None = None,
    ) -> None:
        self.session = session
        self.text = text
        self._call = call
        self._observer = observer if observer is not None else LoggingBindObserver()
        self._projector = OutputResultProjector(call.get_object)
        self.plan: CallPlan = build_call_plan(session, call, text)
        self._projector.add_columns(self.plan.columns)
        self._executed = False
        self._closed = False

    def __enter__(self) -> CallableInvoker:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def procedure(self) -> Procedure | None:
        return self.plan.procedure

    @property
    def output_columns(self) -> tuple[OutputColumn, ...]:
        return self._projector.columns

    @property
    def call(self) -> DriverCall:
        return self._call

    # -- Binding --

    def set_object(self, key: int | str, value: Any) -> None:
        self._call.set_object(key, value)
        self._observer.on_bind(key, value)

    def set_null(self, key: int | str, type_code: int) -> None:
        self._call.set_null(key, type_code)
        self._observer.on_bind(key, None)

    def set_parameters(self, values: Sequence[Any]) -> None:
        """Bind positional values starting at index 1."""
        for index, value in enumerate(values, start=1):
            self.set_object(index, value)

    def register_out_parameter(self, index: int, type_code: int) -> None:
        self._call.register_out_parameter(index, type_code)

    # -- Reading --

    def get_object(self, key: int | str) -> Any:
        return self._call.get_object(key)

    def was_null(self) -> bool:
        return self._call.was_null()

    # -- Execution --

    def execute(self) -> bool:
        """Execute the call once and commit the synthetic row.

        Returns True if there is a result to read, native or synthetic.
        """
        if self._closed:
            raise DriverError("Call is closed")
        if self._executed:
            raise DriverError("Call already executed; prepare a new call")
        span_description = " ".join((self.text or "").split())[:100]
        with sentry_sdk.start_span(op="db.call", description=span_description) as span:
            has_native = self._call.execute()
            span.set_data("native_result", has_native)
        self._executed = True
        self._projector.add_row()
        return has_native or self._projector.column_count > 0

    def get_result_set(self) -> Any | None:
        """Native result set, else the synthetic row if it has columns."""
        native = self._call.get_result_set()
        if native is not None:
            return native
        if self._projector.committed and self._projector.column_count > 0:
            return self._projector
        return None

    def next_results(self) -> bool:
        return self._call.more_results() or self._projector.column_count > 0

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._projector.close()
        self._call.close()
