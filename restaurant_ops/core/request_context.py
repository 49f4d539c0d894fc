from __future__ import annotations

from contextvars import ContextVar


_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
_SUB_DOMAIN_CTX: ContextVar[str | None] = ContextVar("sub_domain", default=None)


def set_request_context(*, request_id: str | None = None, sub_domain: str | None = None) -> None:
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if sub_domain is not None:
        _SUB_DOMAIN_CTX.set(sub_domain)


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


def get_sub_domain() -> str | None:
    return _SUB_DOMAIN_CTX.get()


def clear_request_context() -> None:
    _REQUEST_ID_CTX.set(None)
    _SUB_DOMAIN_CTX.set(None)
