"""Inline stand-ins for libraries the preview sandbox cannot load.

A substitution replaces a whole named-import statement with a small inline
implementation, but only when every imported name is one the stand-in
provides. Anything else is left alone.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple

REACT_IMPORT = re.compile(r"""^[ \t]*import\s+(?:\*\s+as\s+)?React\b""", re.MULTILINE)
REACT_IMPORT_LINE = 'import * as React from "react";\n'

CVA_STAND_IN = """\
const cva = (base, config = {}) => (props = {}) => {
  const { variants = {}, defaultVariants = {}, compoundVariants = [] } = config;
  const pick = (key) => (props[key] !== undefined ? props[key] : defaultVariants[key]);
  const classes = [base];
  Object.keys(variants).forEach((key) => {
    const value = pick(key);
    if (value !== undefined && value !== null) classes.push(variants[key][String(value)]);
  });
  compoundVariants.forEach(({ class: cls, className, ...conditions }) => {
    if (Object.keys(conditions).every((key) => pick(key) === conditions[key])) {
      classes.push(cls, className);
    }
  });
  classes.push(props.class, props.className);
  return classes.filter(Boolean).join(" ");
};
"""

DAY_PICKER_STAND_IN = """\
const getDefaultClassNames = () => new Proxy({}, { get: () => "" });

const DayButton = ({ day, modifiers, ...props }) => <button type="button" {...props} />;

const DayPicker = ({
  className,
  classNames = {},
  month: initialMonth,
  selected,
  onSelect,
  components = {},
}) => {
  const [month, setMonth] = React.useState(() => initialMonth || new Date());
  const year = month.getFullYear();
  const index = month.getMonth();
  const days = [];
  for (let i = 0; i < new Date(year, index, 1).getDay(); i++) days.push(null);
  for (let d = 1; d <= new Date(year, index + 1, 0).getDate(); d++) days.push(new Date(year, index, d));
  const Day = components.DayButton || DayButton;
  const isSelected = (date) => selected instanceof Date && date.toDateString() === selected.toDateString();
  return (
    <div className={className} data-stand-in="react-day-picker">
      <div className={classNames.month_caption}>
        <button type="button" className={classNames.button_previous} onClick={() => setMonth(new Date(year, index - 1, 1))}>
          {"<"}
        </button>
        <span className={classNames.caption_label}>
          {month.toLocaleString(undefined, { month: "long", year: "numeric" })}
        </span>
        <button type="button" className={classNames.button_next} onClick={() => setMonth(new Date(year, index + 1, 1))}>
          {">"}
        </button>
      </div>
      <div className={classNames.weeks} style={{ display: "grid", gridTemplateColumns: "repeat(7, minmax(0, 1fr))" }}>
        {days.map((date, i) =>
          date ? (
            <Day
              key={i}
              day={{ date }}
              modifiers={{ selected: isSelected(date) }}
              className={classNames.day}
              onClick={() => onSelect && onSelect(date)}
            >
              {date.getDate()}
            </Day>
          ) : (
            <span key={i} />
          )
        )}
      </div>
    </div>
  );
};
"""

SLOT_STAND_IN = """\
const Slot = React.forwardRef(({ children, ...props }, ref) => {
  if (!React.isValidElement(children)) return null;
  return React.cloneElement(children, {
    ...props,
    ...children.props,
    className: [props.className, children.props.className].filter(Boolean).join(" "),
    ref,
  });
});
Slot.displayName = "Slot";
"""


@dataclass(frozen=True)
class LibrarySubstitution:
    """Replace ``import { ... } from "<package>"`` with ``stand_in``."""
    name: str
    package: str
    provides: FrozenSet[str]
    stand_in: str
    needs_react: bool = False

    @property
    def pattern(self):
        return re.compile(
            r"""^[ \t]*import\s*\{([^{}]*)\}\s*from\s*["']""" + re.escape(self.package)
            + r"""["'];?[ \t]*(?:\r?\n)?""",
            re.MULTILINE,
        )

    def imported_names(self, clause: str) -> Optional[List[Tuple[str, str]]]:
        """(imported, local) pairs, or None when the clause asks for something unprovided."""
        pairs = []
        for item in clause.split(","):
            item = item.strip()
            if not item:
                continue
            parts = re.split(r"\s+as\s+", item)
            imported = parts[0].strip()
            local = parts[-1].strip()
            if imported not in self.provides:
                return None
            pairs.append((imported, local))
        return pairs or None

    def apply(self, source: str) -> Tuple[str, int]:
        count = 0
        has_react = bool(REACT_IMPORT.search(source))

        def repl(m: re.Match) -> str:
            nonlocal count, has_react
            pairs = self.imported_names(m.group(1))
            if pairs is None:
                return m.group(0)
            count += 1
            block = self.stand_in
            aliases = [f"const {local} = {imported};\n" for imported, local in pairs if local != imported]
            if aliases:
                block += "".join(aliases)
            if self.needs_react and not has_react:
                block = REACT_IMPORT_LINE + block
                has_react = True
            return block + "\n"

        return self.pattern.sub(repl, source), count


SUBSTITUTIONS = (
    LibrarySubstitution(
        name="class-variance-authority",
        package="class-variance-authority",
        provides=frozenset({"cva"}),
        stand_in=CVA_STAND_IN,
    ),
    LibrarySubstitution(
        name="react-day-picker",
        package="react-day-picker",
        provides=frozenset({"DayPicker", "DayButton", "getDefaultClassNames"}),
        stand_in=DAY_PICKER_STAND_IN,
        needs_react=True,
    ),
    LibrarySubstitution(
        name="radix-slot",
        package="@radix-ui/react-slot",
        provides=frozenset({"Slot"}),
        stand_in=SLOT_STAND_IN,
        needs_react=True,
    ),
)


def substitution_names() -> Tuple[str, ...]:
    return tuple(s.name for s in SUBSTITUTIONS)


def substitution_rules(enabled: Optional[Iterable[str]] = None) -> List[LibrarySubstitution]:
    """Substitutions to run, in declaration order.

    Args:
        enabled: Names to enable. None enables all of them.

    Raises:
        ValueError: If ``enabled`` names an unknown substitution.
    """
    if enabled is None:
        return list(SUBSTITUTIONS)
    wanted = set(enabled)
    unknown = sorted(wanted - set(substitution_names()))
    if unknown:
        raise ValueError(f"Unknown substitutions: {', '.join(unknown)}")
    return [s for s in SUBSTITUTIONS if s.name in wanted]
