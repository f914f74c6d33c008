"""
Utilities for calculating how an expense is split among participants.

Functions return dictionaries mapping participant keys to ``Decimal``
amounts quantized to cents. Where the parts are meant to reconstruct the
total, the leftover cents are handed out by largest remainder, ties going
to the earlier participant.
"""
import logging
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def _to_decimal(value):
    return value if isinstance(value, Decimal) else Decimal(str(value))


def allocate_by_weights(amount, weights):
    """
    Split *amount* in proportion to *weights* so the parts sum exactly.

    Parameters
    ----------
    amount : Decimal | str | int | float
        The total amount to split.
    weights : dict
        ``{key: weight}``; weights need not be normalised.

    Returns
    -------
    dict
        ``{key: Decimal}`` in the same order as *weights*.

    Raises
    ------
    ValueError
        If *weights* is empty or sums to zero.
    """
    if not weights:
        raise ValueError('weights must not be empty.')

    amount = _to_decimal(amount)
    weights = {key: _to_decimal(w) for key, w in weights.items()}
    total_weight = sum(weights.values())
    if total_weight <= 0:
        raise ValueError('weights must sum to a positive number.')

    total_cents = int((amount / CENT).to_integral_value(rounding=ROUND_HALF_UP))
    floors = {}
    remainders = []
    for position, (key, weight) in enumerate(weights.items()):
        exact = Decimal(total_cents) * weight / total_weight
        floor = int(exact.to_integral_value(rounding=ROUND_DOWN))
        floors[key] = floor
        remainders.append((exact - floor, -position, key))

    leftover = total_cents - sum(floors.values())
    for _, _, key in sorted(remainders, reverse=True)[:leftover]:
        floors[key] += 1

    return {key: Decimal(cents) * CENT for key, cents in floors.items()}


def calculate_equal_split(amount, participant_keys):
    """
    Split *amount* equally among *participant_keys*.

    ``10.00`` over three participants gives ``3.34, 3.33, 3.33``.

    Raises
    ------
    ValueError
        If *participant_keys* is empty.
    """
    if not participant_keys:
        raise ValueError('participant_keys must not be empty.')
    return allocate_by_weights(amount, {key: 1 for key in participant_keys})


def calculate_custom_split(amounts):
    """
    Return the caller's per-participant amounts quantized to cents.

    No check is made against the expense total.
    """
    if not amounts:
        raise ValueError('amounts must not be empty.')

    return {
        key: _to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
        for key, value in amounts.items()
    }


def calculate_percentage_split(amount, percentages):
    """
    Split *amount* according to *percentages*.

    When the percentages add up to 100 the parts sum exactly to *amount*.
    Any other total is accepted; each part is then rounded on its own.

    Parameters
    ----------
    amount : Decimal | str | int | float
    percentages : dict
        ``{key: percentage}``.

    Returns
    -------
    dict
        ``{key: Decimal}``
    """
    if not percentages:
        raise ValueError('percentages must not be empty.')

    amount = _to_decimal(amount)
    percentages = {key: _to_decimal(pct) for key, pct in percentages.items()}
    total_pct = sum(percentages.values())

    if total_pct == HUNDRED:
        return allocate_by_weights(amount, percentages)

    logger.warning('Percentages sum to %s, not 100; shares will not match the total', total_pct)
    return {
        key: (amount * pct / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
        for key, pct in percentages.items()
    }


def split_total(shares):
    return sum(shares.values(), Decimal('0'))


# Age-based splitting over family units


def build_split_people(family_units):
    """
    Flatten family units into the people who can share a cost.

    Each member comes first as an adult, followed by their dependents.
    """
    people = []
    for unit in family_units:
        member = unit['member']
        member_id = str(member.pk)
        member_name = unit['member_name']
        people.append({
            'id': member_id,
            'type': 'member',
            'name': member_name,
            'age_group': 'adult',
            'responsible_member_id': member_id,
            'responsible_member_name': member_name,
        })
        for dependent in unit['dependents']:
            people.append({
                'id': str(dependent.pk),
                'type': 'dependent',
                'name': dependent.name,
                'age_group': dependent.age_group,
                'responsible_member_id': member_id,
                'responsible_member_name': member_name,
            })
    return people


def calculate_person_amount(person, base_price, pricing_mode, pricing, selected_count):
    """
    Price one selected person.

    ``same`` divides *base_price* evenly over *selected_count*; ``age``
    multiplies it by the person's age-group multiplier.
    """
    base_price = _to_decimal(base_price)
    if pricing_mode == 'same':
        if not selected_count:
            return Decimal('0')
        return (base_price / selected_count).quantize(CENT, rounding=ROUND_HALF_UP)
    multiplier = pricing.get(person['age_group'], Decimal('1'))
    return (base_price * _to_decimal(multiplier)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_age_based_split(family_units, selected_keys, base_price, pricing_mode, pricing):
    """
    Work out what every selected person costs and roll it up per member.

    Parameters
    ----------
    family_units : list[dict]
        As returned by ``apps.trips.services.family.build_family_units``.
    selected_keys : iterable[str]
        ``"member-<id>"`` or ``"dependent-<id>"`` for each chosen person.
    base_price : Decimal
    pricing_mode : str
        ``"same"`` or ``"age"``.
    pricing : dict
        ``{age_group: multiplier}``.

    Returns
    -------
    dict
        ``{'selections': [...], 'summary': {...}}`` with the summary's
        ``byMember`` entries in family-unit order.
    """
    selected_keys = set(selected_keys)
    people = [
        person for person in build_split_people(family_units)
        if f"{person['type']}-{person['id']}" in selected_keys
    ]

    if pricing_mode == 'same' and people:
        shares = allocate_by_weights(base_price, {index: 1 for index in range(len(people))})
        amounts = [shares[index] for index in range(len(people))]
    else:
        amounts = [
            calculate_person_amount(person, base_price, pricing_mode, pricing, len(people))
            for person in people
        ]

    selections = []
    by_member = {}
    for person, amount in zip(people, amounts):
        selections.append({
            'personId': person['id'],
            'personType': person['type'],
            'ageGroup': person['age_group'],
            'responsibleMemberId': person['responsible_member_id'],
            'amount': amount,
        })
        summary = by_member.setdefault(person['responsible_member_id'], {
            'memberId': person['responsible_member_id'],
            'memberName': person['responsible_member_name'],
            'totalAmount': Decimal('0'),
            'breakdown': [],
        })
        summary['breakdown'].append({
            'personId': person['id'],
            'personName': person['name'],
            'ageGroup': person['age_group'],
            'amount': amount,
        })
        summary['totalAmount'] += amount

    members = list(by_member.values())
    return {
        'selections': selections,
        'summary': {
            'totalPeople': len(people),
            'totalAmount': sum((m['totalAmount'] for m in members), Decimal('0')),
            'byMember': members,
        },
    }
