"""Dependency providers for Natours webservice."""

from natours.commons.daos.tour_dao import TourDAO


def get_tour_dao() -> TourDAO:
    """Return the shared tours DAO."""
    return TourDAO.get_instance()
