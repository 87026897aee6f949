"""Canonical codes for Twitch's shorthand (smiley) global emotes.

The global Twitch catalog names its classic smileys with regex-like
patterns such as ``\\:-?\\)``. Each rule here recognises the upstream name
and the concrete spellings it stands for, and maps them to the code a
user actually types.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ShorthandRule:
    """One smiley family: eyes, optional nose, mouth."""

    pattern: str  # Upstream name, e.g. "\\:-?\\)"
    canonical: str
    eyes: str = ""
    mouths: str = ""
    noses: str = "-"
    nose_required: bool = False
    literals: tuple[str, ...] = ()

    def matches(self, code: str) -> bool:
        if code == self.pattern or code in self.literals:
            return True
        if not self.eyes:
            return False
        if len(code) == 2:
            if self.nose_required:
                return False
            return code[0] in self.eyes and code[1] in self.mouths
        if len(code) == 3:
            return code[0] in self.eyes and code[1] in self.noses and code[2] in self.mouths
        return False


SHORTHAND_RULES: tuple[ShorthandRule, ...] = (
    ShorthandRule(r"[oO](_|\.)[oO]", "O_o", eyes="oO", noses="_.", nose_required=True, mouths="oO"),
    ShorthandRule(r"\&lt\;3", "<3", literals=("&lt;3",)),
    ShorthandRule(r"\:-?(p|P)", ":P", eyes=":", mouths="pP"),
    ShorthandRule(r"\:-?[z|Z|\|]", ":Z", eyes=":", mouths="zZ|"),
    ShorthandRule(r"\:-?\)", ":)", eyes=":", mouths=")"),
    ShorthandRule(r"\;-?(p|P)", ";P", eyes=";", mouths="pP"),
    ShorthandRule(r"R-?\)", "R)", eyes="R", mouths=")"),
    ShorthandRule(r"\&gt\;\(", ">(", literals=("&gt;(",)),
    ShorthandRule(r"\:-?(o|O)", ":O", eyes=":", mouths="oO"),
    ShorthandRule(r"\:-?[\\/]", ":/", eyes=":", mouths="\\/"),
    ShorthandRule(r"\:-?\(", ":(", eyes=":", mouths="("),
    ShorthandRule(r"\:-?D", ":D", eyes=":", mouths="D"),
    ShorthandRule(r"\;-?\)", ";)", eyes=";", mouths=")"),
    ShorthandRule(r"B-?\)", "B)", eyes="B", mouths=")"),
    ShorthandRule(r"#-?[\/]", "#/", eyes="#", mouths="/"),
    ShorthandRule(r":-?(?:7|L)", ":7", eyes=":", mouths="7L"),
    ShorthandRule(r"\&lt\;\]", "<]", literals=("&lt;]",)),
    ShorthandRule(r"\:-?(S|s)", ":s", eyes=":", mouths="Ss"),
    ShorthandRule(r"\:\&gt\;", ":>", literals=(":&gt;",)),
)


def normalize_code(code: str) -> str:
    """Return the canonical code for a shorthand emote name, or code unchanged."""
    for rule in SHORTHAND_RULES:
        if rule.matches(code):
            return rule.canonical
    return code
