"""Tests for the value binder."""

from __future__ import annotations

import datetime

import pytest

from _support import Account, AuditInfo, Money, Person, Stamp, Wallet
from recordspine.errors import InvalidRecordError
from recordspine.selector import Field, fields
from recordspine.values import DISCARD, FieldRef, ValueMap, to_param, values


class TestValues:
    def test_keys_are_column_names(self) -> None:
        assert list(values(Person(1, "ada"))) == ["ID", "Name"]

    def test_flattening_and_ignore(self) -> None:
        vm = values(Account())
        assert list(vm) == [
            "ID",
            "full_name",
            "Nick",
            "CreatedAt",
            "Author",
            "Balance",
            "Active",
        ]
        assert "Session" not in vm

    def test_nested_refs_point_at_nested_instance(self) -> None:
        account = Account()
        values(account)["Author"].set("grace")
        assert account.Audit.Author == "grace"

    def test_missing_nested_instance_is_created(self) -> None:
        account = Account()
        account.Audit = None
        vm = values(account)
        assert isinstance(account.Audit, AuditInfo)
        assert vm["Author"].get() == ""

    def test_selector_and_binder_agree(self) -> None:
        assert list(values(Account())) == [f.name for f in fields(Account).select()]

    @pytest.mark.parametrize("target", [Person, 5, "text", None])
    def test_rejects_non_instances(self, target) -> None:
        with pytest.raises(InvalidRecordError):
            values(target)


class TestValueMap:
    def test_map_to_columns_discards_unknown(self) -> None:
        person = Person(1, "ada")
        refs = values(person).map_to_columns(["Name", "Extra", "ID"])
        assert refs[1] is DISCARD
        assert [ref.get() for ref in refs] == ["ada", None, 1]

    def test_map_to_fields(self) -> None:
        person = Person(1, "ada")
        refs = values(person).map_to_fields([Field("Name"), Field("ID")])
        assert [ref.get() for ref in refs] == ["ada", 1]

    def test_bind_follows_selection_order(self) -> None:
        person = Person(7, "linus")
        selected = fields(person).only("Name").select()
        assert values(person).bind(selected) == ["linus"]

    def test_scan_assigns_row(self) -> None:
        person = Person()
        values(person).scan(["ID", "Name", "Extra"], (3, "grace", "ignored"))
        assert person == Person(3, "grace")

    def test_discard_accepts_anything(self) -> None:
        DISCARD.set(object())
        assert DISCARD.get() is None

    def test_is_a_dict(self) -> None:
        vm = values(Person())
        assert isinstance(vm, ValueMap)
        assert isinstance(vm, dict)
        assert isinstance(vm["ID"], FieldRef)


class TestScannerValues:
    def test_set_converts_driver_value(self) -> None:
        wallet = Wallet()
        values(wallet)["Balance"].set(250)
        assert wallet.Balance == Money(250)

    def test_set_keeps_scanner_instances(self) -> None:
        wallet = Wallet()
        values(wallet)["Balance"].set(Money(9))
        assert wallet.Balance == Money(9)

    def test_set_none(self) -> None:
        wallet = Wallet()
        values(wallet)["Balance"].set(None)
        assert wallet.Balance is None

    def test_to_param(self) -> None:
        assert to_param(Money(42)) == 42
        assert to_param("plain") == "plain"
        assert to_param(None) is None


class TestDriverCoercion:
    def test_iso_strings_become_temporal_values(self) -> None:
        stamp = Stamp()
        refs = values(stamp)
        refs["Seen"].set("2021-02-03 04:05:06")
        refs["Day"].set("2021-02-03")
        assert stamp.Seen == datetime.datetime(2021, 2, 3, 4, 5, 6)
        assert stamp.Day == datetime.date(2021, 2, 3)

    def test_native_temporal_values_pass_through(self) -> None:
        stamp = Stamp()
        seen = datetime.datetime(2021, 2, 3, 4, 5, 6)
        values(stamp)["Seen"].set(seen)
        assert stamp.Seen is seen

    def test_datetime_into_date_field(self) -> None:
        stamp = Stamp()
        values(stamp)["Day"].set(datetime.datetime(2021, 2, 3, 4, 5, 6))
        assert stamp.Day == datetime.date(2021, 2, 3)

    @pytest.mark.parametrize(("raw", "expected"), [(1, True), (0, False), (True, True)])
    def test_integers_become_bool(self, raw: int, expected: bool) -> None:
        stamp = Stamp()
        values(stamp)["Active"].set(raw)
        assert stamp.Active is expected

    def test_none_is_kept(self) -> None:
        stamp = Stamp(Day=datetime.date(2021, 2, 3))
        values(stamp)["Day"].set(None)
        assert stamp.Day is None

    @pytest.mark.parametrize(
        ("column", "raw", "error"),
        [
            ("Active", 2, TypeError),
            ("Active", "yes", TypeError),
            ("Seen", 1612325106, TypeError),
            ("Seen", "yesterday", ValueError),
        ],
    )
    def test_mismatch_raises(self, column: str, raw: object, error: type) -> None:
        with pytest.raises(error):
            values(Stamp())[column].set(raw)