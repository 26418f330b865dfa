import datetime
from unittest import mock

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from provenance.models import Action, Operation, OperationTypeFlag
from provenance.services.operations import OperationService


@pytest.fixture
def stain_type(op_type_factory):
    return op_type_factory("Stain", OperationTypeFlag.IN_PLACE)


# ===============================================================
# EMPTY INPUT
# ===============================================================

def test_empty_actions_raise_without_saving():
    op_repo = mock.Mock()
    action_repo = mock.Mock()
    service = OperationService(operation_repo=op_repo, action_repo=action_repo)

    with pytest.raises(ValueError):
        service.create_operation(mock.Mock(), mock.Mock(), [])

    op_repo.save.assert_not_called()
    action_repo.save_all.assert_not_called()


# ===============================================================
# RECORDING
# ===============================================================

@pytest.mark.django_db
def test_create_operation_saves_actions_in_order(user, stain_type, labware_factory, sample_factory):
    s1, s2 = sample_factory(), sample_factory()
    lw = labware_factory("STAN-1", contents={"A1": [s1], "A2": [s2]})
    a1, a2 = lw.slot_list[0], lw.slot_list[1]

    inputs = [
        Action(source=a2, destination=a2, source_sample=s2, sample=s2),
        Action(source=a1, destination=a1, source_sample=s1, sample=s1),
    ]
    op = OperationService().create_operation(stain_type, user, inputs)

    assert op.pk is not None
    assert op.operation_type == stain_type
    assert op.user == user
    assert [(a.destination_id, a.sample_id) for a in op.action_list] == [(a2.pk, s2.pk), (a1.pk, s1.pk)]
    assert all(a.operation_id == op.pk for a in op.action_list)
    # caller's objects are copied, not bound
    assert all(a.pk is None for a in inputs)


@pytest.mark.django_db
def test_mutator_runs_before_first_save(user, stain_type, labware_factory, sample_factory):
    s1 = sample_factory()
    lw = labware_factory("STAN-1", contents={"A1": [s1]})
    when = timezone.now() - datetime.timedelta(days=2)

    op = OperationService().create_operation(
        stain_type,
        user,
        [Action(source=lw.first_slot, destination=lw.first_slot, source_sample=s1, sample=s1)],
        mutator=lambda o: setattr(o, "performed", when),
    )

    assert Operation.objects.get(pk=op.pk).performed == when


@pytest.mark.django_db
def test_in_place_operation_has_one_action_per_sample_entry(user, stain_type, labware_factory, sample_factory):
    s1, s2 = sample_factory(), sample_factory()
    lw = labware_factory("STAN-1", contents={"A1": [s1, s1], "B3": [s2]})

    op = OperationService().create_operation_in_place(stain_type, user, lw)

    assert [(str(a.source.address), a.sample_id) for a in op.action_list] == [
        ("A1", s1.pk),
        ("A1", s1.pk),
        ("B3", s2.pk),
    ]
    assert all(a.source_id == a.destination_id for a in op.action_list)


@pytest.mark.django_db
def test_in_place_on_empty_labware_is_refused(user, stain_type, labware_factory):
    lw = labware_factory("STAN-1")

    with pytest.raises(ValueError):
        OperationService().create_operation_in_place(stain_type, user, lw)
    assert Operation.objects.count() == 0


@pytest.mark.django_db
def test_operation_from_slots(user, op_type_factory, labware_factory, sample_factory):
    transfer = op_type_factory("Transfer")
    s1 = sample_factory()
    src = labware_factory("STAN-1", contents={"A1": [s1]})
    dst = labware_factory("STAN-2")

    op = OperationService().create_operation_from_slots(transfer, user, src.first_slot, dst.first_slot, s1)

    (action,) = op.action_list
    assert action.source_id == src.first_slot.pk
    assert action.destination_id == dst.first_slot.pk
    assert action.source_sample_id == action.sample_id == s1.pk


@pytest.mark.django_db
def test_action_failure_rolls_back_operation(user, stain_type, labware_factory, sample_factory):
    s1 = sample_factory()
    lw = labware_factory("STAN-1", contents={"A1": [s1]})
    action = Action(source=lw.first_slot, destination=lw.first_slot, source_sample=s1, sample=s1)
    action_repo = mock.Mock()
    action_repo.save_all.side_effect = IntegrityError("action insert failed")
    service = OperationService(action_repo=action_repo)

    with pytest.raises(IntegrityError):
        with transaction.atomic():
            service.create_operation(stain_type, user, [action])

    action_repo.save_all.assert_called_once()

    assert Operation.objects.count() == 0
    assert Action.objects.count() == 0
