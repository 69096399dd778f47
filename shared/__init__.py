"""
Shared infrastructure used by the repokit data-access layer.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Pagination defaults, sort directions

- shared.infrastructure: Database
  - db.py: SQLAlchemy engine/sessions, safe_commit(), TransactionManager

- shared.utils: Utilities
  - exceptions.py: HTTP-mapped exceptions (NotFoundError, MalformedCriteriaError)

IMPORT EXAMPLES:
    from shared.infrastructure.db import get_db, TransactionManager
    from shared.config.settings import settings
    from shared.config.constants import Limits, SortDirection
    from shared.utils.exceptions import NotFoundError, MalformedCriteriaError
"""
