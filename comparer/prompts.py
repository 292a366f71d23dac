"""
Profile Comparer - Prompt Construction

Pure functions that turn two profiles and a generation mode into the
messages and sampling parameters sent to the generation provider.
"""

from typing import Dict, List

from .core.models import GenerationMode, GenerationParams, Profile


COMPARISON_SYSTEM_PROMPT = (
    "GitHub profile comparison assistant. Provide concise, humanized comparisons."
)

ROAST_SYSTEM_PROMPT = (
    "You are a hilarious Indian roaster with a desi accent. You roast people in "
    "a funny, savage way using Indian English expressions like \"yaar\", \"bhai\", "
    "\"arre\", \"bro\", etc. Make it entertaining, detailed, and humanized."
)

_ROAST_STYLE = (
    "brutally but humorously in Indian style (use phrases like \"yaar\", "
    "\"bhai\", \"arre\", etc.)."
)

_PARAMS: Dict[GenerationMode, GenerationParams] = {
    GenerationMode.NEUTRAL: GenerationParams(temperature=0.7, max_tokens=1000),
    GenerationMode.ROAST_USER1: GenerationParams(temperature=0.9, max_tokens=1500),
    GenerationMode.ROAST_USER2: GenerationParams(temperature=0.9, max_tokens=1500),
    GenerationMode.ROAST_BOTH: GenerationParams(temperature=0.9, max_tokens=1500),
}


def _languages(profile: Profile) -> str:
    return ", ".join(profile.top_language_names(5)) or "None"


def _comparison_line(profile: Profile) -> str:
    return (
        f"{profile.username}: {profile.name or profile.username} | "
        f"{profile.followers} followers, {profile.following} following | "
        f"{profile.public_repos} repos | {profile.total_stars} stars | "
        f"{profile.total_commits} commits | Languages: {_languages(profile)}"
    )


def _stats_line(profile: Profile, hero: bool = False) -> str:
    label = f"{profile.username} Stats (THE HERO)" if hero else f"{profile.username} Stats"
    return (
        f"{label}: {profile.followers} followers | {profile.public_repos} repos | "
        f"{profile.total_stars} stars | {profile.total_commits} commits | "
        f"Languages: {_languages(profile)}"
    )


def _roast_one(profile1: Profile, profile2: Profile, roast_first: bool) -> str:
    target, hero = (profile1, profile2) if roast_first else (profile2, profile1)
    return (
        "You are a funny Indian roaster with a desi accent. Create a hilarious, "
        f"savage roast of {target.username} while making {hero.username} look "
        "like an absolute legend and hero.\n\n"
        f"{_stats_line(profile1, hero=not roast_first)}\n\n"
        f"{_stats_line(profile2, hero=roast_first)}\n\n"
        f"Roast {target.username} {_ROAST_STYLE} Make {hero.username} look amazing "
        "and superior. Be savage but funny. Make it long, detailed, and "
        "entertaining. Use Indian English expressions naturally."
    )


def build_prompt(profile1: Profile, profile2: Profile, mode: GenerationMode) -> str:
    """Build the user prompt for one generation. No side effects."""
    if mode is GenerationMode.ROAST_USER1:
        return _roast_one(profile1, profile2, roast_first=True)

    if mode is GenerationMode.ROAST_USER2:
        return _roast_one(profile1, profile2, roast_first=False)

    if mode is GenerationMode.ROAST_BOTH:
        return (
            "You are a funny Indian roaster with a desi accent. Create a hilarious, "
            f"savage roast comparing both {profile1.username} and {profile2.username}. "
            "Roast both of them but in a fun, competitive way. Make it entertaining "
            "and savage.\n\n"
            f"{_stats_line(profile1)}\n\n"
            f"{_stats_line(profile2)}\n\n"
            f"Roast both {_ROAST_STYLE} Compare them, roast their weaknesses, make fun "
            "of their stats. Be savage but funny. Make it long, detailed, and "
            "entertaining. Use Indian English expressions naturally."
        )

    return (
        "Compare GitHub profiles:\n\n"
        f"{_comparison_line(profile1)}\n\n"
        f"{_comparison_line(profile2)}\n\n"
        "Provide a concise comparison covering: commonalities, who leads in what "
        "areas, language expertise, and overall insights. Keep it friendly and "
        "conversational."
    )


def system_prompt(mode: GenerationMode) -> str:
    return ROAST_SYSTEM_PROMPT if mode.is_roast else COMPARISON_SYSTEM_PROMPT


def generation_params(mode: GenerationMode) -> GenerationParams:
    return _PARAMS[mode]


def build_messages(profile1: Profile, profile2: Profile, mode: GenerationMode) -> List[Dict[str, str]]:
    """Chat messages for the provider: system framing plus the user prompt."""
    return [
        {"role": "system", "content": system_prompt(mode)},
        {"role": "user", "content": build_prompt(profile1, profile2, mode)},
    ]
