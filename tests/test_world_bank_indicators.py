from __future__ import annotations

import math

import pandas as pd
import pytest

from conftest import MemoryStorage, write_indicator_xlsx
from transformations.world_bank_indicators import (
    OBSERVATION_COLUMNS,
    Observation,
    load_indicator_file,
    normalize_column_name,
    observations_from_dataframe,
    parse_year_header,
    reshape_indicator_to_long,
)


@pytest.mark.parametrize(
    "header, expected",
    [
        (1960, 1960),
        (1960.0, 1960),
        ("1960", 1960),
        (" 2022 ", 2022),
        ("YR1960", 1960),
        ("1960 [YR1960]", 1960),
    ],
)
def test_parse_year_header_accepts_decorated_years(header, expected):
    assert parse_year_header(header) == expected


@pytest.mark.parametrize("header", ["Notes", "", "1960 [YR1961]", 1960.5, True])
def test_parse_year_header_rejects_malformed_headers(header):
    with pytest.raises(ValueError):
        parse_year_header(header)


def test_normalize_column_name():
    assert normalize_column_name("Country Name") == "country_name"
    assert normalize_column_name(" Indicator  Code ") == "indicator_code"


def _wide(**year_values) -> pd.DataFrame:
    data = {
        "Country Name": ["Brazil", "Germany"],
        "Country Code": ["BRA", "DEU"],
        "Indicator Name": ["GDP per capita (current US$)"] * 2,
        "Indicator Code": ["NY.GDP.PCAP.CD"] * 2,
    }
    data.update(year_values)
    return pd.DataFrame(data)


def test_reshape_to_long_format():
    wide = _wide(**{"2020": [1.5, ".."], "2021": ["2,000", None]})

    long_df = reshape_indicator_to_long(wide, "gdp_per_capita")

    assert list(long_df.columns) == OBSERVATION_COLUMNS
    assert len(long_df) == 4
    assert long_df["year"].dtype == "int64"
    assert long_df["value"].dtype == "float64"
    assert set(long_df["data_source"]) == {"gdp_per_capita"}

    bra = long_df[long_df["country_code"] == "BRA"].set_index("year")["value"]
    assert bra[2020] == 1.5
    assert bra[2021] == 2000.0
    deu = long_df[long_df["country_code"] == "DEU"]["value"]
    assert deu.isna().all()


def test_reshape_drops_empty_unnamed_columns():
    wide = _wide(**{"2020": [1.0, 2.0], "Unnamed: 5": [None, None]})

    long_df = reshape_indicator_to_long(wide, "gdp_per_capita")

    assert sorted(long_df["year"].unique()) == [2020]


def test_reshape_rejects_malformed_year_header():
    wide = _wide(**{"2020": [1.0, 2.0], "Notes": ["a", "b"]})

    with pytest.raises(ValueError, match="gdp_per_capita"):
        reshape_indicator_to_long(wide, "gdp_per_capita")


def test_reshape_rejects_non_numeric_values():
    wide = _wide(**{"2020": [1.0, "n/a?"]})

    with pytest.raises(ValueError, match="non-numeric"):
        reshape_indicator_to_long(wide, "gdp_per_capita")


def test_reshape_requires_id_columns():
    wide = _wide(**{"2020": [1.0, 2.0]}).drop(columns=["Indicator Code"])

    with pytest.raises(ValueError, match="indicator_code"):
        reshape_indicator_to_long(wide, "gdp_per_capita")


def test_load_xlsx_skips_preamble_rows(tmp_path):
    path = write_indicator_xlsx(
        tmp_path / "gdp.xlsx",
        "NY.GDP.PCAP.CD",
        "GDP per capita (current US$)",
        {"BRA": [8900.0, 8800.0, 6900.0, None, 8900.0], "WLD": ["..", 11300, 10900, 12300, 12700]},
    )

    long_df = load_indicator_file(path, "gdp_per_capita")

    assert len(long_df) == 10
    assert set(long_df["country_code"]) == {"BRA", "WLD"}
    assert sorted(long_df["year"].unique()) == [2018, 2019, 2020, 2021, 2022]
    assert int(long_df["value"].notna().sum()) == 8
    row = long_df[(long_df["country_code"] == "BRA") & (long_df["year"] == 2018)].iloc[0]
    assert row["country_name"] == "Brazil"
    assert row["indicator_code"] == "NY.GDP.PCAP.CD"


def test_load_through_storage_adapter(tmp_path):
    path = write_indicator_xlsx(
        tmp_path / "pop.xlsx",
        "SP.POP.TOTL",
        "Population, total",
        {"IND": [1.0e9, 1.1e9, 1.2e9, 1.3e9, 1.4e9]},
    )
    storage = MemoryStorage({"pop.xlsx": path.read_bytes()})

    long_df = load_indicator_file("pop.xlsx", "population", storage=storage)

    assert list(long_df["value"]) == [1.0e9, 1.1e9, 1.2e9, 1.3e9, 1.4e9]


def test_load_csv_export(tmp_path):
    path = tmp_path / "tariff.csv"
    path.write_text(
        '"Data Source","World Development Indicators",\n'
        '"Source note","Customs and tariffs subset",\n'
        '"Last Updated Date","2024-06-28",\n'
        '"Country Name","Country Code","Indicator Name","Indicator Code","2021","2022",\n'
        '"Namibia","NAM","Tariff rate","TM.TAX.MRCH.WM.AR.ZS","0.52","",\n',
        encoding="utf-8",
    )

    long_df = load_indicator_file(path, "tariff_rate")

    assert list(long_df["year"]) == [2021, 2022]
    assert long_df["value"].iloc[0] == pytest.approx(0.52)
    assert math.isnan(long_df["value"].iloc[1])


def test_observations_from_dataframe_turns_nan_into_none():
    long_df = reshape_indicator_to_long(_wide(**{"2020": [1.0, None]}), "gdp_per_capita")

    records = list(observations_from_dataframe(long_df))

    assert records[0] == Observation(
        country_code="BRA",
        country_name="Brazil",
        indicator_code="NY.GDP.PCAP.CD",
        indicator_name="GDP per capita (current US$)",
        year=2020,
        value=1.0,
        data_source="gdp_per_capita",
    )
    assert records[1].value is None


def test_load_csv_skips_blank_id_rows(tmp_path, capsys):
    path = tmp_path / "tariff.csv"
    path.write_text(
        '"Data Source","World Development Indicators",\n'
        '"Source note","Customs and tariffs subset",\n'
        '"Last Updated Date","2024-06-28",\n'
        '"Country Name","Country Code","Indicator Name","Indicator Code","2021",\n'
        '"Namibia","NAM","Tariff rate","TM.TAX.MRCH.WM.AR.ZS","0.52",\n'
        ',,,,,\n',
        encoding="utf-8",
    )

    long_df = load_indicator_file(path, "tariff_rate")

    assert set(long_df["country_code"]) == {"NAM"}
    assert len(long_df) == 1
    assert "tariff_rate: 1 countries" in capsys.readouterr().out


def test_reshape_skips_rows_without_country_code():
    wide = _wide(**{"2020": [1.0, 2.0]})
    wide.loc[1, "Country Code"] = None

    long_df = reshape_indicator_to_long(wide, "gdp_per_capita")

    assert list(long_df["country_code"]) == ["BRA"]
