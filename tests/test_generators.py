from datetime import date, timedelta

import pytest

from freight_hub.core.errors import CsvDataError
from freight_hub.generators.common import normalize_title, parse_csv, seeded_random
from freight_hub.generators.freight import REQUIRED_COLUMNS as FREIGHT_COLUMNS
from freight_hub.generators.freight import generate_freight_offers
from freight_hub.generators.vehicle_space import generate_vehicle_space_offers


TODAY = date(2025, 3, 14)
TOMORROW = (TODAY + timedelta(days=1)).isoformat()
DAY_AFTER = (TODAY + timedelta(days=2)).isoformat()


@pytest.fixture
def freight_csv(hub_settings):
    return hub_settings.data_dir / "freight_offers.csv"


@pytest.fixture
def vehicle_csv(hub_settings):
    return hub_settings.data_dir / "vehicle_offers.csv"


def test_count_below_row_count_is_direct_conversion(freight_csv):
    offers = generate_freight_offers(freight_csv, 2, today=TODAY)

    assert len(offers) == 2
    assert [o.freight_description for o in offers] == ["Palletised dairy products", "Steel coils"]
    assert offers[0].weight_t == 7.5
    assert offers[0].length_m == 13.6


def test_three_rows_five_offers(freight_csv):
    offers = generate_freight_offers(freight_csv, 5, today=TODAY)

    assert len(offers) == 5
    assert offers[3].freight_description == "SDK generated freight 3"
    assert offers[4].freight_description == "SDK generated freight 4"
    # variations of rows 0 and 1, weight within +-20%
    assert 7.5 * 0.8 - 0.01 <= offers[3].weight_t <= 7.5 * 1.2 + 0.01
    assert 24 * 0.8 - 0.01 <= offers[4].weight_t <= 24 * 1.2 + 0.01
    assert 13.6 * 0.8 - 0.01 <= offers[3].length_m <= 13.6 * 1.2 + 0.01
    assert 12.0 * 0.8 - 0.01 <= offers[4].length_m <= 12.0 * 1.2 + 0.01
    # flags are recomputed from the index, not copied from the source row
    for i in (3, 4):
        assert offers[i].trackable is (seeded_random(i * 12345 + 2) > 0.5)
        assert offers[i].accept_quotes is (seeded_random(i * 12345 + 3) > 0.6)
    assert offers[3].contact_person == offers[0].contact_person


def test_generation_is_deterministic(freight_csv):
    first = [o.to_payload() for o in generate_freight_offers(freight_csv, 20, today=TODAY)]
    second = [o.to_payload() for o in generate_freight_offers(freight_csv, 20, today=TODAY)]
    assert first == second


def test_dates_are_tomorrow_and_within_31_days(freight_csv):
    offers = generate_freight_offers(freight_csv, 40, today=TODAY)

    direct = offers[0].loading_places
    assert [p.loading_type for p in direct] == ["LOADING", "UNLOADING"]
    assert direct[0].earliest_loading_date == TOMORROW
    assert direct[1].earliest_loading_date == DAY_AFTER

    last = (TODAY + timedelta(days=31)).isoformat()
    for offer in offers:
        for place in offer.loading_places:
            assert TOMORROW <= place.earliest_loading_date <= last
            assert place.earliest_loading_date == place.latest_loading_date


def test_freight_row_mapping(freight_csv):
    first, second, third = generate_freight_offers(freight_csv, 3, today=TODAY, customer_id=555)

    assert first.customer.id == 555
    assert first.contact_person.title == "MR"  # Herr
    assert second.contact_person.title == "MRS"  # Ms
    assert third.contact_person.title == "MR"  # Dr
    assert first.contact_person.languages == ["de", "en"]
    assert first.vehicle_properties.body == ["MOVING_FLOOR"]
    assert first.vehicle_properties.type == ["VEHICLE_UP_TO_12_T"]
    assert first.trackable is True and first.accept_quotes is False
    assert third.trackable is True  # "TRUE"
    assert first.price.amount == 850 and first.price.currency == "EUR"
    assert first.additional_information == ["Tail lift required", "No double stacking"]
    assert first.loading_places[0].address.city == "Düsseldorf"
    assert first.loading_places[0].start_time == "08:00"
    assert first.loading_places[1].address.country == "PL"
    assert third.closed_freight_exchange_setting.publication_type == "EXTERNAL_LATER"
    assert third.closed_freight_exchange_setting.retention_duration_in_minutes == 60


def test_blank_optional_fields_are_omitted(freight_csv):
    payload = generate_freight_offers(freight_csv, 2, today=TODAY)[1].to_payload()

    assert "price" not in payload
    assert "paymentDueWithinDays" not in payload
    assert "publicRemark" not in payload
    assert "closedFreightExchangeSetting" not in payload
    assert payload["internalRemark"] == "Customer ref 4471"
    assert "" not in payload.values()
    assert payload["objectType"] == "freightOffer"
    assert "length_m" in payload and "weight_t" in payload


def test_customer_id_falls_back_to_csv(freight_csv):
    offer = generate_freight_offers(freight_csv, 1, today=TODAY)[0]
    assert offer.customer.id == 902245


def test_vehicle_space_offers(vehicle_csv):
    offers = generate_vehicle_space_offers(vehicle_csv, 7, today=TODAY)

    assert len(offers) == 7
    first, second = offers[0], offers[1]
    assert first.customer.id == 10421
    assert first.object_type == "VehicleSpaceOffer"
    assert first.accept_quotes is True
    assert first.loading_places[0].address.city == "Warszawa"
    assert first.loading_places[1].address.city == "Berlin"
    assert first.loading_places[0].earliest_loading_date == TOMORROW
    assert first.additional_information == [
        "Trailer length: 13.6m",
        "Trailer weight: 24t",
        "Destination area: 150km radius",
    ]
    # exactly one vehicle type, even when the CSV lists two
    assert second.vehicle_properties.type == ["VEHICLE_UP_TO_12_T"]
    assert second.contact_person.title == "MRS"
    assert offers[5].customer.id == offers[2].customer.id
    assert "weight_t" not in offers[3].to_payload()


def test_missing_file_and_empty_csv(tmp_path):
    with pytest.raises(CsvDataError):
        generate_freight_offers(tmp_path / "missing.csv", 5, today=TODAY)

    empty = tmp_path / "empty.csv"
    empty.write_text(",".join(FREIGHT_COLUMNS) + "\n", encoding="utf-8")
    with pytest.raises(CsvDataError, match="No valid data found"):
        generate_freight_offers(empty, 5, today=TODAY)


def test_parse_csv_skips_incomplete_and_ragged_rows():
    text = (
        "customer-id,contactPerson-firstName,freightDescription\n"
        "1,Ann,Bricks\n"
        "2,,Sand\n"
        "3,Bob\n"
        "\n"
        '4,"Cy",Steel, coils\n'
        '5,Dee,"Glass, fragile"\n'
    )
    rows = parse_csv(text, required=FREIGHT_COLUMNS)
    assert [r.get("customer-id") for r in rows] == ["1", "5"]
    assert rows[1].get("freightDescription") == "Glass, fragile"


def test_title_lookup_and_seeded_random():
    assert normalize_title("Professor") == "MR"
    assert normalize_title("Miss") == "MRS"
    assert normalize_title("mx") == "MX"
    assert normalize_title("") == "MR"
    assert 0 <= seeded_random(12345) < 1
    assert seeded_random(42) == seeded_random(42)


def test_free_text_cells_degrade_to_defaults(freight_csv):
    text = freight_csv.read_text(encoding="utf-8")
    text = text.replace(",DE,Düsseldorf,", ",Germany,Düsseldorf,")
    text = text.replace(",PL,Poznań,", ",pol,Poznań,")
    text = text.replace("13.6,7.5,850,EUR,30,", "-13.6,7.5,850,EURO,5000,")
    text = text.replace("Partners first", "x" * 200)
    freight_csv.write_text(text, encoding="utf-8")

    first, _, third = generate_freight_offers(freight_csv, 3, today=TODAY)

    assert first.loading_places[0].address.country == "DE"
    assert first.loading_places[0].address.city == "Düsseldorf"
    assert first.loading_places[1].address.country == "PL"
    assert first.price.currency == "EUR"
    assert first.length_m == 12.31
    assert first.payment_due_within_days == 999
    assert len(third.closed_freight_exchange_setting.remark) == 150


def test_vehicle_country_name_falls_back(vehicle_csv):
    text = vehicle_csv.read_text(encoding="utf-8").replace("Warszawa,PL,", "Warszawa,POL,")
    vehicle_csv.write_text(text, encoding="utf-8")

    first = generate_vehicle_space_offers(vehicle_csv, 1, today=TODAY)[0]

    assert [p.address.country for p in first.loading_places] == ["DE", "PL"]
    assert first.loading_places[0].address.city == "Warszawa"


def test_vehicle_variations_stay_within_31_days(vehicle_csv):
    offers = generate_vehicle_space_offers(vehicle_csv, 40, today=TODAY)

    last = (TODAY + timedelta(days=31)).isoformat()
    for i, offer in enumerate(offers):
        loading, unloading = offer.loading_places
        assert TOMORROW <= loading.earliest_loading_date < unloading.earliest_loading_date <= last
        assert loading.earliest_loading_date == loading.latest_loading_date
        if i >= 3:
            assert offer.trackable is (seeded_random(i * 54321) > 0.4)
            assert offer.accept_quotes is (seeded_random(i * 54321 + 3) > 0.3)
            assert offer.customer.id == offers[i % 3].customer.id

    assert {o.trackable for o in offers[3:]} == {True, False}
