"""Pydantic input models for MCP tool validation.

Each model represents the input schema for one or more tools, with
field-level validation and descriptive error messages. Validation happens at
the tool boundary; core operations treat absent optional fields as defaults.

Architecture:
- base: Base models (BaseGraphInput, BasePageInput, BaseBlockInput)
- page_models: Page CRUD and property models
- block_models: Block read/insert/update/delete/move models
- journal_models: Journal creation, lookup and summary models
- search_models: Search, task and reference-graph models
- graph_models: Graph selection and overview models
"""

from .base import BaseBlockInput, BaseGraphInput, BasePageInput
from .page_models import (
    ListPagesInput,
    ReadPageInput,
    CreatePageInput,
    UpdatePageInput,
    DeletePageInput,
    RenamePageInput,
    GetPagePropertiesInput,
    SetPagePropertyInput,
)
from .block_models import (
    ListBlocksInput,
    GetBlockInput,
    InsertBlockInput,
    UpdateBlockInput,
    SetBlockTaskStateInput,
    DeleteBlockInput,
    DeleteBlockByContentInput,
    MoveBlockInput,
)
from .journal_models import (
    CreateJournalPageInput,
    GetTodayJournalInput,
    GetJournalByDateInput,
    GetJournalSummaryInput,
)
from .search_models import (
    SearchInput,
    GetTodosInput,
    GetBacklinksInput,
    GetReferenceGraphInput,
    FindKnowledgeGapsInput,
)
from .graph_models import (
    ListGraphsInput,
    SetActiveGraphInput,
    GraphInfoInput,
    UpdateGraphConfigInput,
)

__all__ = [
    # Base models
    "BaseGraphInput",
    "BasePageInput",
    "BaseBlockInput",
    # Page models
    "ListPagesInput",
    "ReadPageInput",
    "CreatePageInput",
    "UpdatePageInput",
    "DeletePageInput",
    "RenamePageInput",
    "GetPagePropertiesInput",
    "SetPagePropertyInput",
    # Block models
    "ListBlocksInput",
    "GetBlockInput",
    "InsertBlockInput",
    "UpdateBlockInput",
    "SetBlockTaskStateInput",
    "DeleteBlockInput",
    "DeleteBlockByContentInput",
    "MoveBlockInput",
    # Journal models
    "CreateJournalPageInput",
    "GetTodayJournalInput",
    "GetJournalByDateInput",
    "GetJournalSummaryInput",
    # Search models
    "SearchInput",
    "GetTodosInput",
    "GetBacklinksInput",
    "GetReferenceGraphInput",
    "FindKnowledgeGapsInput",
    # Graph models
    "ListGraphsInput",
    "SetActiveGraphInput",
    "GraphInfoInput",
    "UpdateGraphConfigInput",
]
