"""
hermes/features/tool_access/configs.py

Tool access configuration.

Every gated tool must be registered here by name: tools without an entry
are not gated at all.
"""

from typing import Dict, Iterable, Optional

from hermes.models.subscription import SubscriptionTier
from hermes.models.tool_access import ToolAccessConfig, ToolRestriction


FREE_TRIAL = SubscriptionTier.FREE_TRIAL
SEEKER = SubscriptionTier.SEEKER
ADEPT = SubscriptionTier.ADEPT
MASTER = SubscriptionTier.MASTER

per_day = ToolRestriction.usage_per_day
per_month = ToolRestriction.usage_per_month
disabled = ToolRestriction.feature_disabled
limited = ToolRestriction.parameter_limited


def _build(configs: Iterable[ToolAccessConfig]) -> Dict[str, ToolAccessConfig]:
    table: Dict[str, ToolAccessConfig] = {}
    for config in configs:
        if config.tool_name in table:
            raise ValueError(f"Duplicate tool access config: {config.tool_name}")
        table[config.tool_name] = config
    return table


TOOL_ACCESS_CONFIGS: Dict[str, ToolAccessConfig] = _build([
    # Basic tools, every tier
    ToolAccessConfig(
        tool_name="ritual_generator",
        required_tier=FREE_TRIAL,
        free_tier_limit=3,
        basic_tier_limit=15,
        restrictions={
            FREE_TRIAL: [per_day(3, "Limited to 3 rituals per day")],
            SEEKER: [per_day(15, "Up to 15 rituals per day")],
            ADEPT: [],
            MASTER: [],
        },
    ),
    ToolAccessConfig(
        tool_name="mantra_creator",
        required_tier=FREE_TRIAL,
        free_tier_limit=5,
        basic_tier_limit=25,
        restrictions={
            FREE_TRIAL: [per_day(5, "Limited to 5 mantras per day")],
            SEEKER: [per_day(25, "Up to 25 mantras per day")],
            ADEPT: [],
            MASTER: [],
        },
    ),
    ToolAccessConfig(
        tool_name="meditation_generator",
        required_tier=FREE_TRIAL,
        free_tier_limit=2,
        basic_tier_limit=10,
        restrictions={
            FREE_TRIAL: [per_day(2, "Limited to 2 meditations per day")],
            SEEKER: [per_day(10, "Up to 10 meditations per day")],
            ADEPT: [],
            MASTER: [],
        },
    ),

    # Intermediate tools, SEEKER and up
    ToolAccessConfig(
        tool_name="dream_interpreter",
        required_tier=SEEKER,
        free_tier_limit=0,
        basic_tier_limit=10,
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to SEEKER for dream interpretation")],
            SEEKER: [per_day(10, "Up to 10 dream interpretations per day")],
            ADEPT: [per_day(25, "Up to 25 dream interpretations per day")],
            MASTER: [],
        },
    ),
    ToolAccessConfig(
        tool_name="challenge_analyzer",
        required_tier=SEEKER,
        free_tier_limit=0,
        basic_tier_limit=8,
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to SEEKER for challenge analysis")],
            SEEKER: [per_day(8, "Up to 8 challenge analyses per day")],
            ADEPT: [per_day(20, "Up to 20 challenge analyses per day")],
            MASTER: [],
        },
    ),
    ToolAccessConfig(
        tool_name="numerology_calculator",
        required_tier=SEEKER,
        free_tier_limit=0,
        basic_tier_limit=5,
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to SEEKER for numerology readings")],
            SEEKER: [per_day(5, "Up to 5 numerology readings per day")],
            ADEPT: [per_day(15, "Up to 15 numerology readings per day")],
            MASTER: [],
        },
    ),

    # Advanced tools, ADEPT and up
    ToolAccessConfig(
        tool_name="tarot_reader",
        required_tier=ADEPT,
        free_tier_limit=0,
        basic_tier_limit=0,
        premium_features=["celtic_cross", "custom_spreads", "advanced_interpretations"],
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to ADEPT for tarot readings")],
            SEEKER: [disabled("Upgrade to ADEPT for tarot readings")],
            ADEPT: [
                per_day(5, "Up to 5 tarot readings per day"),
                limited("basic_spreads", "Limited to basic spreads"),
            ],
            MASTER: [],
        },
    ),
    ToolAccessConfig(
        tool_name="sigil_creator",
        required_tier=ADEPT,
        free_tier_limit=0,
        basic_tier_limit=0,
        premium_features=["advanced_methods", "custom_alphabets", "batch_creation"],
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to ADEPT for sigil creation")],
            SEEKER: [disabled("Upgrade to ADEPT for sigil creation")],
            ADEPT: [
                per_day(3, "Up to 3 sigils per day"),
                limited("basic_methods", "Limited to basic creation methods"),
            ],
            MASTER: [],
        },
    ),

    # Premium tools, MASTER
    ToolAccessConfig(
        tool_name="gpt5_thinking_mode",
        required_tier=MASTER,
        free_tier_limit=0,
        basic_tier_limit=0,
        premium_features=["deep_analysis", "multi_step_reasoning", "philosophical_inquiry"],
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to MASTER for advanced thinking mode")],
            SEEKER: [disabled("Upgrade to MASTER for advanced thinking mode")],
            ADEPT: [
                per_day(2, "Up to 2 thinking sessions per day"),
                limited("basic_analysis", "Limited to basic analysis"),
            ],
            MASTER: [],
        },
    ),
    ToolAccessConfig(
        tool_name="transformation_program",
        required_tier=MASTER,
        free_tier_limit=0,
        basic_tier_limit=0,
        premium_features=["personalized_programs", "advanced_guidance", "progress_tracking"],
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to MASTER for transformation programs")],
            SEEKER: [disabled("Upgrade to MASTER for transformation programs")],
            ADEPT: [
                per_month(2, "Up to 2 programs per month"),
                limited("basic_guidance", "Limited guidance features"),
            ],
            MASTER: [],
        },
    ),

    # Voice
    ToolAccessConfig(
        tool_name="voice_generation",
        required_tier=SEEKER,
        free_tier_limit=0,
        basic_tier_limit=50,
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to SEEKER for voice generation")],
            SEEKER: [
                per_day(50, "Up to 50 voice generations per day"),
                limited("basic_voices", "Limited to 3 voice options"),
            ],
            ADEPT: [
                per_day(200, "Up to 200 voice generations per day"),
                limited("premium_voices", "Access to all voice options"),
            ],
            MASTER: [],
        },
    ),

    # Analytics
    ToolAccessConfig(
        tool_name="analytics_spiritual",
        required_tier=FREE_TRIAL,
        restrictions={
            FREE_TRIAL: [limited("basic", "Basic analytics only")],
            SEEKER: [limited("advanced", "Advanced analytics included")],
            ADEPT: [limited("premium", "Premium analytics with insights")],
            MASTER: [limited("full", "Complete analytics suite")],
        },
    ),
    ToolAccessConfig(
        tool_name="analytics_tools",
        required_tier=ADEPT,
        restrictions={
            FREE_TRIAL: [disabled("Upgrade to ADEPT for tool analytics")],
            SEEKER: [disabled("Upgrade to ADEPT for tool analytics")],
            ADEPT: [limited("basic", "Basic tool analytics")],
            MASTER: [limited("full", "Complete tool analytics suite")],
        },
    ),
])


def get_tool_config(tool_name: str) -> Optional[ToolAccessConfig]:
    return TOOL_ACCESS_CONFIGS.get(tool_name)
