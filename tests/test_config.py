import argparse
from datetime import datetime

import pytest
from pydantic import ValidationError

from depth_heatmap.config import DashboardConfig
from depth_heatmap.fmt import fmt_num, fmt_time
from depth_heatmap.main import add_dashboard_args, config_from_args


class TestDashboardConfig:

    def test_defaults(self):
        config = DashboardConfig()
        assert config.depth == 15
        assert config.block_size == 30
        assert config.scale == "linear"
        assert config.theme == "color"

    @pytest.mark.parametrize("field, value", [
        ("tick_size", 0),
        ("levels", 0),
        ("update_interval", -1),
        ("scale", "log10"),
        ("theme", "sepia"),
        ("linear_cutoff", 1.5),
        ("buffer_levels", -1),
    ])
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            DashboardConfig(**{field: value})

    def test_unknown_option_rejected(self):
        with pytest.raises(ValidationError):
            DashboardConfig(refresh=5)

    def test_frozen(self):
        config = DashboardConfig()
        with pytest.raises(ValidationError):
            config.levels = 3


class TestArgs:

    def parse(self, *argv):
        parser = argparse.ArgumentParser()
        add_dashboard_args(parser)
        return parser.parse_args(list(argv))

    def test_defaults(self):
        config = config_from_args(self.parse())
        assert config == DashboardConfig()

    def test_options(self):
        config = config_from_args(self.parse(
            "ethusdt", "--tick-size", "0.01", "--levels", "20", "--aggregation", "10",
            "--interval", "500", "--series-length", "120", "--scale", "log2",
            "--theme", "monochrome",
        ))
        assert config.symbol == "ETHUSDT"
        assert config.tick_size == 0.01
        assert config.depth == 25
        assert config.aggregation == 10
        assert config.update_interval == 500
        assert config.max_series_length == 120
        assert config.scale == "log2"
        assert config.theme == "monochrome"

    def test_invalid_choice_exits(self):
        with pytest.raises(SystemExit):
            self.parse("--scale", "cubic")


@pytest.mark.parametrize("qty, expected", [
    (2_500_000, "2.5M"),
    (2_500, "2.5K"),
    (3.0, "3"),
    (2.5, "2.5"),
    (0.1234, "0.123"),
    (0, "0"),
])
def test_fmt_num(qty, expected):
    assert fmt_num(qty) == expected


def test_fmt_time():
    when = datetime(2024, 1, 1, 12, 0, 1, 250_000)
    assert fmt_time(when, 250) == "12:00:01.250"
    assert fmt_time(when, 1000) == "12:00:01"
