from provenance.services.block_sections import BlockSectionCounter
from provenance.services.clean_out import CleanOutRequest, CleanOutService
from provenance.services.comments import CommentService
from provenance.services.destruction import DestructionService
from provenance.services.operations import OperationResult, OperationService
from provenance.services.reactivate import ReactivateLabware, ReactivateService
from provenance.services.sectioning import SectionDestination, SectionRequest, SectionService
from provenance.services.transactions import transact
from provenance.services.unrelease import UnreleaseLabware, UnreleaseService
from provenance.services.work import WorkService

__all__ = [
    "BlockSectionCounter",
    "CleanOutRequest",
    "CleanOutService",
    "CommentService",
    "DestructionService",
    "OperationResult",
    "OperationService",
    "ReactivateLabware",
    "ReactivateService",
    "SectionDestination",
    "SectionRequest",
    "SectionService",
    "UnreleaseLabware",
    "UnreleaseService",
    "WorkService",
    "transact",
]
