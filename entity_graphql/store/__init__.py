# Copyright 2026-present Kensho Technologies, LLC.
from .sqlite_store import SqliteStore  # noqa
from .typedefs import (  # noqa
    DEFAULT_FIRST,
    DEFAULT_ORDER_BY,
    DEFAULT_ORDER_DIRECTION,
    DEFAULT_SKIP,
    ModelFilter,
    QueryContext,
    Record,
    Store,
    make_model_filter,
)
