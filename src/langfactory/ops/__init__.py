"""
Operations layer: the transport-agnostic API of langfactory.

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise)
- All functions support ``dry_run`` mode for safe previews

Usage::

    from langfactory.ops import OperationContext
    from langfactory.ops.namespaces import create_namespace
    from langfactory.ops.requests import CreateNamespaceRequest

    ctx = OperationContext(conn=SqliteConnection("factory.db"))
    result = create_namespace(ctx, CreateNamespaceRequest(slug="fr_demo"))
    assert result.success
"""

from langfactory.ops.context import OperationContext
from langfactory.ops.result import OperationError, OperationResult

__all__ = ["OperationContext", "OperationError", "OperationResult"]
