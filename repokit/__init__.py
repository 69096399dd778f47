"""
repokit: criteria-driven repositories and transactional services for
SQLAlchemy.

Structure:
- repokit.models: declarative base and mixins (timestamps, archived marker)
- repokit.criteria: QueryParameters, operators and the criteria applier
- repokit.repositories: BaseRepository, SoftDeletesRepository, pagination
- repokit.services: BaseService, SoftDeletesService
"""

__version__ = "0.1.0"
