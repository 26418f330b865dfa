# provenance/services/comments.py

from __future__ import annotations

from typing import Iterable, List, Optional

from provenance.models import Comment, Operation, OperationComment
from provenance.problems import ProblemSink, distinct, repr_items
from provenance.repositories import CommentRepo


class CommentService:
    def __init__(self, *, comment_repo: Optional[CommentRepo] = None):
        self.comment_repo = comment_repo or CommentRepo()

    def validate_comment_ids(self, problems: ProblemSink, ids: Iterable[Optional[int]]) -> List[Comment]:
        """Load the given comments, reporting null, unknown and disabled ids."""
        ids = list(ids or [])
        if any(i is None for i in ids):
            problems.add("Null given as comment ID.")
        wanted = distinct(i for i in ids if i is not None)
        if not wanted:
            return []

        found = {c.pk: c for c in self.comment_repo.find_all_by_id_in(wanted)}
        unknown = [i for i in wanted if i not in found]
        if unknown:
            problems.add(f"Unknown comment IDs: {repr_items(unknown)}.")
        disabled = [i for i in wanted if i in found and not found[i].enabled]
        if disabled:
            problems.add(f"Comment not enabled: {repr_items(disabled)}.")
        return [found[i] for i in wanted if i in found]

    def record_operation_comments(self, operation: Operation, comment: Optional[Comment]) -> List[OperationComment]:
        """Attach the comment to every (sample, destination slot) of the operation."""
        if comment is None:
            return []
        return OperationComment.objects.bulk_create(
            [
                OperationComment(
                    comment=comment,
                    operation=operation,
                    sample=action.sample,
                    slot=action.destination,
                )
                for action in operation.action_list
            ]
        )
