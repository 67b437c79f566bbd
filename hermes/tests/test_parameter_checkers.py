import pytest

from hermes.features.tool_access.parameters import (
    PARAMETER_CHECKERS,
    check_analytics_level,
    get_parameter_checker,
    register_parameter_checker,
)
from hermes.models.subscription import SubscriptionTier


@pytest.mark.parametrize(
    "tool_name,mode,parameters,unlock",
    [
        ("tarot_reader", "basic_spreads", {"spread": "celtic_cross"}, SubscriptionTier.MASTER),
        ("voice_generation", "basic_voices", {"voice": "nova"}, SubscriptionTier.ADEPT),
        ("sigil_creator", "basic_methods", {"method": "planetary"}, SubscriptionTier.MASTER),
        ("analytics_tools", "basic", {"level": "full"}, SubscriptionTier.MASTER),
    ],
)
def test_value_outside_allow_list_is_denied(tool_name, mode, parameters, unlock):
    violation = get_parameter_checker(tool_name)(mode, parameters)
    assert violation is not None
    assert violation.upgrade_required == unlock


@pytest.mark.parametrize(
    "tool_name,mode,parameters",
    [
        ("tarot_reader", "basic_spreads", {"spread": "three_card"}),
        ("tarot_reader", "basic_spreads", {"spread": "simple_cross"}),
        ("voice_generation", "basic_voices", {"voice": "fable"}),
        ("sigil_creator", "basic_methods", {"method": "simple"}),
    ],
)
def test_value_in_allow_list_passes(tool_name, mode, parameters):
    assert get_parameter_checker(tool_name)(mode, parameters) is None


@pytest.mark.parametrize("tool_name", ["gpt5_thinking_mode", "transformation_program"])
def test_master_only_tools_have_no_checker(tool_name):
    assert get_parameter_checker(tool_name) is None


def test_missing_parameter_passes():
    assert get_parameter_checker("tarot_reader")("basic_spreads", {"question": "?"}) is None


def test_unknown_mode_never_denies():
    assert get_parameter_checker("voice_generation")("premium_voices", {"voice": "nova"}) is None


def test_unhashable_value_is_denied_not_raised():
    violation = get_parameter_checker("tarot_reader")("basic_spreads", {"spread": ["celtic_cross"]})
    assert violation is not None


def test_analytics_levels():
    assert check_analytics_level("advanced", {"level": "basic"}) is None
    assert check_analytics_level("advanced", {"level": "advanced"}) is None

    violation = check_analytics_level("basic", {"level": "premium"})
    assert violation.upgrade_required == SubscriptionTier.ADEPT

    unknown = check_analytics_level("premium", {"level": "cosmic"})
    assert unknown.upgrade_required == SubscriptionTier.MASTER


def test_register_parameter_checker_as_decorator():
    @register_parameter_checker("crystal_grid")
    def check_grid(mode, parameters):
        return None

    try:
        assert get_parameter_checker("crystal_grid") is check_grid
    finally:
        PARAMETER_CHECKERS.pop("crystal_grid", None)
