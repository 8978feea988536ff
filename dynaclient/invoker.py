"""Construct and call generated types purely by name.

Two kinds of failure are kept apart:

- plumbing: the type, method or signature asked for does not exist or
  does not match. Raised as InvocationPlumbingError; a caller bug.
- domain: the generated method ran and raised (typically ApiException
  for a non-2xx response). Returned as data in ``Invocation.failure``
  so negative tests can inspect it.
"""

from __future__ import annotations

import inspect
import logging
import typing
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .artifacts import SymbolTable
from .envelope import ErrorEnvelope, decode_envelope
from .errors import DomainInvocationError, InvocationPlumbingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainFailure:
    """What a generated method raised, with the HTTP status and raw body if it had them."""

    exception: BaseException
    status: int | None = None
    body: str | None = None

    def envelope(self) -> ErrorEnvelope:
        return decode_envelope(self.body)


@dataclass(frozen=True)
class Invocation:
    """Result of one reflective call: a value or a domain failure."""

    method: str
    value: Any = None
    failure: DomainFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> Any:
        if self.failure is not None:
            raise DomainInvocationError(self.failure) from self.failure.exception
        return self.value


def _describe(target: Any) -> str:
    return target.__name__ if inspect.isclass(target) else type(target).__name__


class ReflectiveInvoker:
    """Reflective access to one loaded symbol table.

    ``error_type`` names the generated exception class whose ``status``
    and ``body`` attributes describe a failed HTTP call.
    """

    def __init__(self, symbols: SymbolTable, error_type: str | None = "swagger_client.ApiException") -> None:
        self.symbols = symbols
        self.error_type = symbols.get(error_type) if error_type else None
        if error_type and self.error_type is None:
            logger.warning("Error type %s not found; domain failures carry no body", error_type)

    def get_type(self, name: str) -> type:
        handle = self.symbols[name]
        if not inspect.isclass(handle):
            raise InvocationPlumbingError(f"{name} is not a class")
        return handle

    def construct(self, name: str, /, *args: Any, **kwargs: Any) -> Any:
        """Instantiate a generated class by name.

        ``name`` is positional-only so generated fields called ``name``
        pass through as keyword arguments.
        """
        cls = self.get_type(name)
        try:
            inspect.signature(cls).bind(*args, **kwargs)
        except TypeError as exc:
            raise InvocationPlumbingError(f"No constructor {name}{self._arity(args, kwargs)}: {exc}") from exc
        return cls(*args, **kwargs)

    @staticmethod
    def _arity(args: Sequence[Any], kwargs: Mapping[str, Any]) -> str:
        shown = [type(a).__name__ for a in args] + [f"{k}=" for k in kwargs]
        return f"({', '.join(shown)})"

    def find_method(self, target: Any, name: str, signature: Sequence[Any] | None = None) -> Any:
        """Bound method ``name`` on target, checked against declared parameter types.

        ``signature`` lists the expected annotation of each parameter
        (excluding ``self``), in order.
        """
        method = getattr(target, name, None)
        if method is None or not callable(method):
            raise InvocationPlumbingError(f"{_describe(target)} has no method {name}")
        if signature is not None:
            self._check_signature(target, name, method, list(signature))
        return method

    def _check_signature(self, target: Any, name: str, method: Any, expected: list[Any]) -> None:
        params = [
            p for p in inspect.signature(method).parameters.values()
            if p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        ]
        declared = [p.annotation for p in params]
        if any(isinstance(t, str) for t in declared):
            # postponed annotations
            try:
                hints = typing.get_type_hints(method)
            except (NameError, TypeError):
                hints = {}
            declared = [hints.get(p.name, p.annotation) for p in params]
        if declared != expected:
            wanted = ", ".join(getattr(t, "__name__", str(t)) for t in expected)
            raise InvocationPlumbingError(f"{_describe(target)} has no method {name}({wanted})")

    def invoke(
        self,
        target: Any,
        name: str,
        /,
        *args: Any,
        signature: Sequence[Any] | None = None,
        **kwargs: Any,
    ) -> Invocation:
        """Call ``target.name(*args, **kwargs)``.

        Arguments that do not bind are a plumbing error, raised before
        the call; anything the method itself raises comes back as a
        DomainFailure. Use invoke_with() for a method that takes its
        own ``signature`` keyword.
        """
        return self.invoke_with(target, name, args, kwargs, signature=signature)

    def invoke_with(
        self,
        target: Any,
        name: str,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        *,
        signature: Sequence[Any] | None = None,
    ) -> Invocation:
        """invoke() with the call arguments passed explicitly."""
        args = tuple(args)
        kwargs = dict(kwargs or {})
        method = self.find_method(target, name, signature)
        try:
            inspect.signature(method).bind(*args, **kwargs)
        except TypeError as exc:
            raise InvocationPlumbingError(
                f"Cannot call {_describe(target)}.{name}{self._arity(args, kwargs)}: {exc}"
            ) from exc

        try:
            value = method(*args, **kwargs)
        except Exception as exc:
            failure = self._domain_failure(exc)
            logger.debug("%s.%s failed with %s (status=%s)", _describe(target), name, type(exc).__name__, failure.status)
            return Invocation(method=name, failure=failure)
        return Invocation(method=name, value=value)

    def _domain_failure(self, exc: Exception) -> DomainFailure:
        if self.error_type is not None and isinstance(exc, self.error_type):
            return DomainFailure(exception=exc, status=getattr(exc, "status", None), body=getattr(exc, "body", None))
        return DomainFailure(exception=exc)

    def call(self, target: Any, name: str, /, *args: Any, **kwargs: Any) -> Any:
        """invoke() and unwrap(): the value, or DomainInvocationError.

        Every keyword goes to the generated method; no signature check.
        """
        return self.invoke_with(target, name, args, kwargs).unwrap()

    # client wiring

    def set_base_path(self, client: Any, base_path: str) -> Any:
        return self.call(client, "set_base_path", base_path)

    def add_default_header(self, client: Any, header: str, value: str) -> Any:
        return self.call(client, "add_default_header", header, value)

    def new_client(
        self,
        client_type: str,
        base_path: str | None = None,
        headers: Mapping[str, str] | None = None,
        auth: Any = None,
    ) -> Any:
        """A fresh client instance with its own base path, headers and auth."""
        client = self.construct(client_type)
        if base_path:
            self.set_base_path(client, base_path)
        for header, value in (headers or {}).items():
            self.add_default_header(client, header, value)
        if auth is not None:
            auth.apply(self, client)
        return client

    def attach_api(self, api_type: str, client: Any) -> Any:
        """A new API instance bound to ``client``."""
        api = self.construct(api_type)
        self.call(api, "set_api_client", client)
        return api

    @staticmethod
    def decode_failure(failure: DomainFailure) -> ErrorEnvelope:
        return failure.envelope()
