from __future__ import annotations

import logging

from opsforge.domain.entities import DepartmentEntity
from opsforge.domain.errors import NotFoundError
from opsforge.domain.validation import require_text
from opsforge.infra.repository import DepartmentRepository

logger = logging.getLogger(__name__)


class DepartmentService:
    def __init__(self, repo: DepartmentRepository) -> None:
        self._repo = repo

    def list_departments(self) -> list[DepartmentEntity]:
        return self._repo.list_departments()

    def next_code(self) -> str:
        return self._repo.next_code()

    def create_department(self, data: dict) -> DepartmentEntity:
        department = self._repo.create_department(require_text(data, "name"))
        logger.info("Department created: %s (%s)", department.name, department.code)
        return department

    def delete_department(self, department_id: int) -> None:
        if not self._repo.delete_department(department_id):
            raise NotFoundError("Department", department_id)
