"""Two-slide Marp deck used to show one transition."""

from transgif.settings import TransitionVariant

_DECK = """\
---
transition: {spec}
theme: uncover
style: |
  h1 {{
    line-height: 2;
  }}
_backgroundImage: linear-gradient(-45deg, #ddd, #fff)
---

# <!--fit--> {name}

---

<!--
backgroundColor: #0288d1;
class: invert
-->

# <!--fit--> {name}
"""


def render_template(variant: TransitionVariant) -> str:
    """Return the Markdown deck for *variant*."""
    return _DECK.format(spec=variant.transition_spec, name=variant.name).strip()
