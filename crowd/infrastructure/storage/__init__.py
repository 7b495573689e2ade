# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .memory import MemoryStorage
from .sqlalchemy_storage import SqlAlchemyStorage

__all__ = ["MemoryStorage", "SqlAlchemyStorage"]
