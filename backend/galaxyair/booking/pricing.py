"""Per-class fares, seat availability and the single trip pricing formula.

All functions are pure: identical inputs always give identical outputs and
nothing is cached between calls.
"""
from typing import Iterable

from galaxyair.schemas.booking import SearchCriteria, Selection
from galaxyair.schemas.flight import CabinClass, FlightOffer, OfferView


def unit_price(offer: FlightOffer, cabin: CabinClass) -> float:
    return offer.fare(cabin).price


def is_selectable(offer: FlightOffer, cabin: CabinClass, party_size: int) -> bool:
    return offer.fare(cabin).available >= party_size


def total_price(
    outbound: FlightOffer,
    return_flight: FlightOffer | None,
    cabin: CabinClass,
    party_size: int,
) -> float:
    """(outbound fare + return fare) * party size. No taxes or fees."""
    per_person = unit_price(outbound, cabin)
    if return_flight is not None:
        per_person += unit_price(return_flight, cabin)
    return per_person * party_size


def quote(criteria: SearchCriteria, selection: Selection) -> float:
    if selection.outbound is None:
        return 0.0
    return total_price(selection.outbound, selection.return_flight, criteria.class_type, criteria.party_size)


def annotate(offers: Iterable[FlightOffer], cabin: CabinClass, party_size: int) -> list[OfferView]:
    return [
        OfferView(offer=o, unit_price=unit_price(o, cabin), selectable=is_selectable(o, cabin, party_size))
        for o in offers
    ]
