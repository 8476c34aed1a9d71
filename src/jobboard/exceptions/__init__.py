# jobboard/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # App-level errors (NotFoundError, ConflictError, InternalError)
# │   ├── storage.py                 # Errors raised by model delegates
# │   ├── integrity_classifier.py    # SQLAlchemy IntegrityError -> storage errors
# │   └── mapper.py                  # Storage errors -> app-level errors

from .base import ConflictError, InternalError, NotFoundError, RepositoryError

__all__ = [
    "RepositoryError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
]
