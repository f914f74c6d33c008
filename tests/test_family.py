from decimal import Decimal

import pytest

from apps.trips.models import TripDependent
from apps.trips.services.family import (
    build_family_units,
    calculate_group_total,
    count_by_age_group,
    default_age_group_for_type,
    infer_age_group,
)


@pytest.mark.parametrize('age, expected', [
    (None, 'adult'),
    (0, 'infant'),
    (2, 'infant'),
    (3, 'child'),
    (12, 'child'),
    (13, 'teen'),
    (17, 'teen'),
    (18, 'adult'),
])
def test_infer_age_group(age, expected):
    assert infer_age_group(age) == expected


def test_default_age_group_for_type():
    assert default_age_group_for_type('child') == 'child'
    assert default_age_group_for_type('friends_child') == 'child'
    assert default_age_group_for_type('spouse') == 'adult'


def test_count_by_age_group_includes_responsible_member():
    counts = count_by_age_group(['child', 'child', 'infant'])
    assert counts == {'adult': 1, 'teen': 0, 'child': 2, 'infant': 1, 'total': 4}


def test_calculate_group_total_uses_multipliers():
    total = calculate_group_total(Decimal('40'), {'adult': 2, 'child': 1, 'infant': 1})
    assert total == Decimal('100')


@pytest.mark.django_db
def test_family_units_put_bigger_parties_first(trip, alice, bob, carol):
    for name in ('Ava', 'Noah'):
        TripDependent.objects.create(trip=trip, name=name, age_group='child', responsible_member=carol, added_by=carol)

    units = build_family_units([alice, bob, carol], TripDependent.objects.filter(trip=trip), current_user_id=bob.pk)

    assert [unit['member_name'] for unit in units] == ['Carol', 'Alice', 'Bob']
    assert units[0]['total_people'] == 3
    assert [unit['is_current_user'] for unit in units] == [False, False, True]


@pytest.mark.django_db
def test_dependents_api_infers_age_group_and_reports_units(client_for, trip, alice):
    client = client_for(alice)
    base = f'/api/v1/trips/{trip.pk}/dependents/'

    created = client.post(base, [
        {'name': 'Ava', 'type': 'child', 'age': 7},
        {'name': 'Sam', 'type': 'spouse'},
    ], format='json')
    assert created.status_code == 201
    assert [row['ageGroup'] for row in created.json()['data']] == ['child', 'adult']
    assert {row['responsibleMember'] for row in created.json()['data']} == {str(alice.pk)}

    data = client.get(f'{base}family-units/').json()['data']
    assert data['counts']['total'] == 5
    assert data['counts']['adult'] == 4
    assert data['units'][0]['memberName'] == 'Alice'
    assert data['units'][0]['totalPeople'] == 3


@pytest.mark.django_db
def test_dependent_requires_group_member_as_responsible(client_for, trip, alice, outsider):
    response = client_for(alice).post(
        f'/api/v1/trips/{trip.pk}/dependents/',
        {'name': 'Ava', 'responsibleMember': str(outsider.pk)},
        format='json',
    )
    assert response.status_code == 400
    assert response.json()['error']['message'] == 'Responsible member must belong to the group.'
