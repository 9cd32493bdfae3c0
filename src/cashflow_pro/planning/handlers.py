"""
Planning Handlers - apply validated commands to a project

Handlers are the decision-making layer:
1. Validate the command against the current project (nothing mutated yet)
2. Apply the change
3. Keep projections in step (recompute on create/edit, cascade on delete)

They hold no project state; the project is passed in on every call.
"""

from collections.abc import Mapping
from typing import Any

from cashflow_pro.kernel.errors import ValidationError
from cashflow_pro.kernel.ids import IdFactory, default_id_factory
from cashflow_pro.kernel.logging import get_logger
from cashflow_pro.kernel.settings import CashflowSettings, default_settings
from cashflow_pro.planning.commands import (
    AddCategory,
    DeleteCategory,
    UpdateCategory,
    UpdateProjectInfo,
)
from cashflow_pro.planning.invariants import (
    build_category,
    build_project_info,
    validate_category_exists,
)
from cashflow_pro.planning.models import BudgetCategory, Project, ProjectInfo
from cashflow_pro.planning.projections import ProjectionAggregator

logger = get_logger(__name__)

# Document (camelCase) keys accepted in update payloads
CATEGORY_FIELD_ALIASES = {
    "costType": "cost_type",
    "distributionMethod": "distribution_method",
    "distributionParams": "distribution_params",
}

PARAM_FIELD_ALIASES = {
    "start_month": "startMonth",
    "manual_distribution": "manualDistribution",
}


def _camel_params(params: dict[str, Any]) -> dict[str, Any]:
    return {PARAM_FIELD_ALIASES.get(key, key): value for key, value in params.items()}


class PlanningCommandHandlers:
    """
    Command handlers for categories and the project header

    Every handler validates the full resulting state before touching the
    project, so a rejected command leaves it unchanged.
    """

    def __init__(
        self,
        projections: ProjectionAggregator | None = None,
        id_factory: IdFactory | None = None,
        settings: CashflowSettings | None = None,
    ) -> None:
        """
        Args:
            projections: Aggregator used to keep scenarios in step
            id_factory: Source of time-derived category ids
            settings: Distribution defaults for new categories
        """
        self.settings = settings or default_settings
        self.projections = projections or ProjectionAggregator(self.settings)
        self.id_factory = id_factory or default_id_factory

    def _next_category_id(self, project: Project) -> int:
        existing = project.category_ids()
        category_id = self.id_factory.next_int()
        while category_id in existing:
            category_id = self.id_factory.next_int()
        return category_id

    def handle_add_category(self, project: Project, command: AddCategory) -> BudgetCategory:
        """
        Add a category and project it into every scenario

        Raises:
            ValidationError: If any field is invalid (nothing is added)
        """
        category = build_category(
            {
                "id": self._next_category_id(project),
                "code": command.code,
                "name": command.name,
                "amount": command.amount,
                "cost_type": command.cost_type,
                "distribution_method": command.distribution_method,
                "distribution_params": {
                    **self.settings.default_distribution_params(),
                    **_camel_params(command.distribution_params),
                },
            }
        )

        project.budget_categories.append(category)
        self.projections.recompute_projections(project, category.id)

        logger.info("Category added", category_id=category.id, code=category.code)
        return category

    def handle_update_category(
        self, project: Project, command: UpdateCategory
    ) -> BudgetCategory:
        """
        Edit a category in place and recompute its projections

        Distribution params in the update are merged into the existing ones.

        Raises:
            CategoryNotFound: If the category does not exist
            ValidationError: If the edited category would be invalid
        """
        category = validate_category_exists(project, command.category_id)

        updates = {
            CATEGORY_FIELD_ALIASES.get(key, key): value
            for key, value in command.updates.items()
        }
        if "id" in updates and updates["id"] != category.id:
            raise ValidationError("Category id cannot be changed")

        data = category.model_dump()
        data["distribution_params"] = category.distribution_params.model_dump(
            by_alias=True, exclude_none=True
        )
        if "distribution_params" in updates:
            params = updates.pop("distribution_params") or {}
            if not isinstance(params, Mapping):
                raise ValidationError("Distribution params must be an object")
            data["distribution_params"].update(_camel_params(dict(params)))
        data.update(updates)

        candidate = build_category(data)
        for field in BudgetCategory.model_fields:
            setattr(category, field, getattr(candidate, field))

        self.projections.recompute_projections(project, category.id)
        logger.info("Category updated", category_id=category.id)
        return category

    def handle_delete_category(
        self, project: Project, command: DeleteCategory
    ) -> BudgetCategory:
        """
        Remove a category and cascade to every scenario

        Raises:
            CategoryNotFound: If the category does not exist
        """
        category = validate_category_exists(project, command.category_id)

        project.budget_categories = [
            c for c in project.budget_categories if c.id != category.id
        ]
        self.projections.remove_category(project, category.id)

        logger.info("Category deleted", category_id=category.id)
        return category

    def handle_update_project_info(
        self, project: Project, command: UpdateProjectInfo
    ) -> ProjectInfo:
        """
        Replace header fields that are set on the command

        Raises:
            ValidationError: Name blank or end date before start date
        """
        data = project.info.model_dump()
        data.update(command.model_dump(exclude_none=True))

        project.info = build_project_info(data)
        return project.info
