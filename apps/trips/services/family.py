"""
Family tracking helpers: who travels with whom, and how many of each
age group are coming.
"""
from decimal import Decimal

from django.conf import settings

from apps.trips.constants import AgeGroup, DependentType


def infer_age_group(age):
    """Age group for an age in years; unknown ages count as adults."""
    if age is None:
        return AgeGroup.ADULT
    if age < 3:
        return AgeGroup.INFANT
    if age < 13:
        return AgeGroup.CHILD
    if age < 18:
        return AgeGroup.TEEN
    return AgeGroup.ADULT


def default_age_group_for_type(dependent_type):
    if dependent_type in (DependentType.CHILD, DependentType.FRIENDS_CHILD):
        return AgeGroup.CHILD
    return AgeGroup.ADULT


def age_pricing(overrides=None):
    """Default price multipliers with *overrides* merged on top."""
    pricing = {
        group: Decimal(str(value))
        for group, value in settings.DEFAULT_AGE_PRICING.items()
    }
    for group, value in (overrides or {}).items():
        if group in AgeGroup.values:
            pricing[group] = Decimal(str(value))
    return pricing


def build_family_units(members, dependents, current_user_id=None):
    """
    Group dependents under the member responsible for them.

    Parameters
    ----------
    members : iterable of User
    dependents : iterable of TripDependent
    current_user_id : UUID | None
        Flags the caller's own unit.

    Returns
    -------
    list[dict]
        One unit per member, largest party first, then by name.
    """
    dependents = list(dependents)
    units = []
    for member in members:
        own = [d for d in dependents if d.responsible_member_id == member.pk]
        units.append({
            'member': member,
            'member_name': member.display_name or member.full_name or 'Member',
            'is_current_user': member.pk == current_user_id,
            'dependents': own,
            'total_people': 1 + len(own),
        })

    units.sort(key=lambda unit: unit['member_name'])
    units.sort(key=lambda unit: unit['total_people'], reverse=True)
    return units


def count_by_age_group(age_groups, include_responsible_member=True):
    """
    Count people per age group. The responsible member always counts as
    one adult.
    """
    counts = {group: 0 for group in AgeGroup.values}
    counts['total'] = 0
    if include_responsible_member:
        counts[AgeGroup.ADULT] += 1
        counts['total'] += 1

    for group in age_groups:
        counts[group] += 1
        counts['total'] += 1
    return counts


def calculate_group_total(base_price, people_counts, pricing=None):
    """Price a party given per-age-group head counts."""
    pricing = pricing or age_pricing()
    base_price = Decimal(str(base_price))
    return sum(
        (base_price * pricing[group] * people_counts.get(group, 0) for group in AgeGroup.values),
        Decimal('0'),
    )
