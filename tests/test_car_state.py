"""Tests for the tagged car state."""

import pytest

from carrental.domain.car_state import (
    Available,
    Maintenance,
    Rented,
    car_state_from_row,
    car_state_to_row,
)


class TestCarStateFromRow:
    def test_available(self):
        assert car_state_from_row("available", None) == Available()

    def test_maintenance(self):
        assert car_state_from_row("maintenance", None) == Maintenance()

    def test_rented_carries_reservation(self):
        state = car_state_from_row("rented", "res-1")
        assert state == Rented(reservation_id="res-1")

    def test_rented_without_reservation_rejected(self):
        with pytest.raises(ValueError, match="no current reservation"):
            car_state_from_row("rented", None)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError, match="unknown car status"):
            car_state_from_row("stolen", None)


class TestCarStateToRow:
    def test_rented(self):
        assert car_state_to_row(Rented(reservation_id="res-9")) == ("rented", "res-9")

    def test_available_clears_reservation(self):
        assert car_state_to_row(Available()) == ("available", None)

    def test_maintenance_clears_reservation(self):
        assert car_state_to_row(Maintenance()) == ("maintenance", None)
