import pytest

from provenance.models import OperationComment, OperationTypeFlag
from provenance.problems import ProblemSink
from provenance.services.comments import CommentService
from provenance.services.operations import OperationService


@pytest.mark.django_db
def test_validate_comment_ids(comment_factory):
    good = comment_factory("Looks fine")
    disabled = comment_factory("Retired", enabled=False)
    problems = ProblemSink()

    comments = CommentService().validate_comment_ids(problems, [good.pk, None, 9999, disabled.pk, good.pk])

    assert comments == [good, disabled]
    assert problems.as_list() == [
        "Null given as comment ID.",
        "Unknown comment IDs: [9999].",
        f"Comment not enabled: [{disabled.pk}].",
    ]


@pytest.mark.django_db
def test_no_comment_ids_is_fine():
    problems = ProblemSink()
    assert CommentService().validate_comment_ids(problems, []) == []
    assert not problems


@pytest.mark.django_db
def test_record_operation_comments(user, op_type_factory, comment_factory, labware_factory, sample_factory):
    op_type = op_type_factory("Stain", OperationTypeFlag.IN_PLACE)
    s1, s2 = sample_factory(), sample_factory()
    lw = labware_factory("STAN-1", contents={"A1": [s1], "A2": [s2]})
    op = OperationService().create_operation_in_place(op_type, user, lw)
    comment = comment_factory()

    CommentService().record_operation_comments(op, comment)

    rows = OperationComment.objects.filter(operation=op).order_by("id")
    assert [(r.comment_id, r.sample_id, r.slot_id) for r in rows] == [
        (comment.pk, s1.pk, lw.slot_list[0].pk),
        (comment.pk, s2.pk, lw.slot_list[1].pk),
    ]


@pytest.mark.django_db
def test_record_without_comment_does_nothing(user, op_type_factory, labware_factory, sample_factory):
    op_type = op_type_factory("Stain", OperationTypeFlag.IN_PLACE)
    lw = labware_factory("STAN-1", contents={"A1": [sample_factory()]})
    op = OperationService().create_operation_in_place(op_type, user, lw)

    assert CommentService().record_operation_comments(op, None) == []
    assert OperationComment.objects.count() == 0
