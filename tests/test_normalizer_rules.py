"""Tests for individual rewrite rules and the normalizer pipeline."""

import logging

import pytest

from transform.normalizer import DialectNormalizer
from transform.rules import DIRECTIVE, literal_spans, scan_until, specifier_rules, typing_rules


def _rule(name, rules=None):
    for rule in rules or (specifier_rules() + typing_rules()):
        if rule.name == name:
            return rule
    raise KeyError(name)


def _apply(name, source):
    return _rule(name).apply(source)


BUTTON_TSX = '''"use client"

import * as React from "react"
import { Slot } from "@radix-ui/react-slot"
import { cva, type VariantProps } from "class-variance-authority"

import { cn } from "@/lib/utils"

const buttonVariants = cva(
  "inline-flex items-center justify-center",
  {
    variants: {
      variant: {
        default: "bg-primary text-primary-foreground",
        ghost: "hover:bg-accent",
      },
    },
    defaultVariants: {
      variant: "default",
    },
  }
)

export interface ButtonProps
  extends React.ButtonHTMLAttributes<HTMLButtonElement>,
    VariantProps<typeof buttonVariants> {
  asChild?: boolean
}

const Button = React.forwardRef<HTMLButtonElement, ButtonProps>(
  ({ className, variant, asChild = false, ...props }, ref) => {
    const Comp = asChild ? Slot : "button"
    return (
      <Comp
        className={cn(buttonVariants({ variant, className }))}
        ref={ref}
        {...props}
      />
    )
  }
)
Button.displayName = "Button"

export { Button, buttonVariants }
'''

FORM_TSX = '''"use client"

import * as React from "react"
import {
  Controller,
  type ControllerProps,
  type FieldPath,
  type FieldValues,
} from "react-hook-form"

import { cn } from "@/lib/utils"

type FormFieldContextValue<
  TFieldValues extends FieldValues = FieldValues,
  TName extends FieldPath<TFieldValues> = FieldPath<TFieldValues>
> = {
  name: TName
}

const FormFieldContext = React.createContext<FormFieldContextValue>(
  {} as FormFieldContextValue
)

const FormField = <
  TFieldValues extends FieldValues = FieldValues,
  TName extends FieldPath<TFieldValues> = FieldPath<TFieldValues>
>({
  ...props
}: ControllerProps<TFieldValues, TName>) => {
  return (
    <FormFieldContext.Provider value={{ name: props.name }}>
      <Controller {...props} />
    </FormFieldContext.Provider>
  )
}

export { FormField }
'''


class TestDirectiveRule:
    """Tests for leading pragma removal."""

    def test_strips_leading_use_client(self):
        """Leading directive and the blank lines after it are removed."""
        text, count = DIRECTIVE.apply('"use client"\n\nimport * as React from "react"\n')
        assert text == 'import * as React from "react"\n'
        assert count == 1

    def test_strips_single_quoted_with_semicolon(self):
        text, _ = DIRECTIVE.apply("'use client';\nconst a = 1\n")
        assert text == "const a = 1\n"

    def test_ignores_directive_not_at_start(self):
        """Only a directive at the top of the module is a pragma."""
        source = 'import x from "y"\n"use client"\n'
        assert DIRECTIVE.apply(source) == (source, 0)


class TestSpecifierRules:
    """Tests for registry and relative specifier rewrites."""

    def test_registry_ui_alias(self):
        text, count = _apply("registry-ui-alias", 'import { Button } from "@/registry/default/ui/button"\n')
        assert text == 'import { Button } from "@/components/ui/button"\n'
        assert count == 1

    def test_registry_ui_alias_other_style(self):
        text, _ = _apply("registry-ui-alias", "import { Label } from '@/registry/new-york/ui/label'\n")
        assert text == "import { Label } from '@/components/ui/label'\n"

    def test_registry_lib_alias(self):
        text, _ = _apply("registry-lib-alias", 'import { cn } from "@/registry/default/lib/utils"\n')
        assert text == 'import { cn } from "@/lib/utils"\n'

    def test_registry_hooks_alias(self):
        text, _ = _apply("registry-hooks-alias", 'import { useIsMobile } from "@/registry/new-york/hooks/use-mobile"\n')
        assert text == 'import { useIsMobile } from "@/hooks/use-mobile"\n'

    def test_registry_fallback_alias(self):
        """Registry paths outside ui/lib/hooks map to the component directory by basename."""
        text, _ = _apply("registry-fallback-alias", 'import { X } from "@/registry/default/example/x-demo"\n')
        assert text == 'import { X } from "@/components/ui/x-demo"\n'

    def test_relative_sibling(self):
        text, count = _apply("relative-sibling", 'import { Label } from "./label"\n')
        assert text == 'import { Label } from "@/components/ui/label"\n'
        assert count == 1

    def test_relative_sibling_leaves_asset_imports(self):
        source = 'import "./styles.css"\n'
        assert _apply("relative-sibling", source) == (source, 0)

    def test_relative_components_ui(self):
        text, _ = _apply("relative-components-ui", 'import { Input } from "../components/ui/input"\n')
        assert text == 'import { Input } from "@/components/ui/input"\n'

    def test_relative_shared_lib(self):
        text, _ = _apply("relative-shared-lib", 'import { cn } from "../../lib/utils"\n')
        assert text == 'import { cn } from "@/lib/utils"\n'

    def test_custom_aliases(self):
        """Aliases come from configuration."""
        rules = specifier_rules(internal_alias="~/ui", shared_lib_alias="~/lib")
        text, _ = _rule("registry-ui-alias", rules).apply('import { A } from "@/registry/default/ui/a"\n')
        assert text == 'import { A } from "~/ui/a"\n'
        text, _ = _rule("registry-lib-alias", rules).apply('import { cn } from "@/registry/default/lib/utils"\n')
        assert text == 'import { cn } from "~/lib/utils"\n'


class TestTypeImportRules:
    """Tests for removal of type-only imports and specifiers."""

    def test_type_only_import_removed(self):
        source = 'import type { VariantProps } from "class-variance-authority"\nimport { cn } from "@/lib/utils"\n'
        text, count = _apply("type-only-imports", source)
        assert text == 'import { cn } from "@/lib/utils"\n'
        assert count == 1

    def test_type_only_reexport_removed(self):
        text, _ = _apply("type-only-imports", 'export type { ButtonProps }\nexport { Button }\n')
        assert text == "export { Button }\n"

    def test_inline_type_specifier_removed(self):
        text, count = _apply(
            "inline-type-specifiers",
            'import { cva, type VariantProps } from "class-variance-authority"\n',
        )
        assert text == 'import { cva } from "class-variance-authority"\n'
        assert count == 1

    def test_all_type_specifiers_drop_statement(self):
        text, _ = _apply("inline-type-specifiers", 'import { type A, type B } from "x"\nconst a = 1\n')
        assert text == "const a = 1\n"

    def test_default_import_kept_when_named_are_types(self):
        text, _ = _apply("inline-type-specifiers", 'import React, { type ReactNode } from "react"\n')
        assert text == 'import React from "react"\n'

    def test_multiline_clause_keeps_layout(self):
        source = 'import {\n  Root,\n  type RootProps,\n} from "x"\n'
        text, _ = _apply("inline-type-specifiers", source)
        assert text == 'import {\n  Root,\n} from "x"\n'

    def test_export_clause(self):
        text, _ = _apply("inline-type-specifiers", "export { Button, type ButtonProps }\n")
        assert text == "export { Button }\n"


class TestDeclarationRules:
    """Tests for interface and type alias removal."""

    def test_interface_with_extends_removed(self):
        source = (
            "export interface ButtonProps\n"
            "  extends React.ButtonHTMLAttributes<HTMLButtonElement> {\n"
            "  asChild?: boolean\n"
            "}\n"
            "\n"
            "const a = 1\n"
        )
        text, count = _apply("interface-declarations", source)
        assert text == "\nconst a = 1\n"
        assert count == 1

    def test_nested_braces_in_interface(self):
        source = "interface Props {\n  style: { color: string }\n  onChange: (v: string) => void\n}\nconst b = 2\n"
        text, _ = _apply("interface-declarations", source)
        assert text == "const b = 2\n"

    def test_single_line_type_alias(self):
        text, count = _apply("type-alias-declarations", 'type Size = "sm" | "lg"\nconst a = 1\n')
        assert text == "const a = 1\n"
        assert count == 1

    def test_multiline_union_type_alias(self):
        source = 'type Variant =\n  | "default"\n  | "ghost"\nconst b = 2\n'
        text, _ = _apply("type-alias-declarations", source)
        assert text == "const b = 2\n"

    def test_object_type_alias(self):
        source = "export type Props = {\n  open: boolean\n}\nexport { a }\n"
        text, _ = _apply("type-alias-declarations", source)
        assert text == "export { a }\n"

    def test_type_alias_with_semicolon(self):
        text, _ = _apply("type-alias-declarations", "type Id = string;\nconst c = 3;\n")
        assert text == "const c = 3;\n"

    def test_generic_type_alias_with_defaults(self):
        source = (
            "type FieldContext<\n"
            "  TValues extends FieldValues = FieldValues,\n"
            "  TName extends FieldPath<TValues> = FieldPath<TValues>\n"
            "> = {\n"
            "  name: TName\n"
            "}\n"
            "\n"
            "const a = 1\n"
        )
        text, count = _apply("type-alias-declarations", source)
        assert text == "\nconst a = 1\n"
        assert count == 1

    def test_type_word_without_alias_untouched(self):
        source = 'import {\n  Root,\n  type RootProps,\n} from "x"\n'
        assert _apply("type-alias-declarations", source) == (source, 0)


class TestAnnotationRules:
    """Tests for generic arguments and annotations."""

    def test_generic_call_arguments(self):
        source = "const Button = React.forwardRef<HTMLButtonElement, ButtonProps>(\n  (props, ref) => null\n)\n"
        text, count = _apply("generic-call-arguments", source)
        assert text == "const Button = React.forwardRef(\n  (props, ref) => null\n)\n"
        assert count == 1

    def test_generic_with_union(self):
        text, _ = _apply("generic-call-arguments", "const [v, setV] = React.useState<string | null>(null)\n")
        assert text == "const [v, setV] = React.useState(null)\n"

    def test_jsx_untouched(self):
        source = 'return <div className="a">hi</div>\n'
        assert _apply("generic-call-arguments", source) == (source, 0)

    def test_generic_arrow_parameters(self):
        source = "const FormField = <\n  T extends FieldValues = FieldValues,\n>({ ...props }) => {\n"
        text, count = _apply("generic-arrow-parameters", source)
        assert text == "const FormField = ({ ...props }) => {\n"
        assert count == 1

    def test_trailing_comma_type_parameter(self):
        text, _ = _apply("generic-arrow-parameters", "const id = <T,>(value) => value\n")
        assert text == "const id = (value) => value\n"

    def test_jsx_element_after_assignment_untouched(self):
        source = "const el = <span>(draft)</span>\n"
        assert _apply("generic-arrow-parameters", source) == (source, 0)

    def test_destructured_parameter_annotation(self):
        source = 'function Card({ className, ...props }: React.ComponentProps<"div">) {\n'
        text, count = _apply("parameter-annotations", source)
        assert text == "function Card({ className, ...props }) {\n"
        assert count == 1

    def test_parameter_list(self):
        text, count = _apply("parameter-annotations", "function f(a: string, b?: number, c = 1) {}\n")
        assert text == "function f(a, b, c = 1) {}\n"
        assert count == 2

    def test_parameter_with_default_after_type(self):
        text, _ = _apply("parameter-annotations", "function f(size: number = 4) {}\n")
        assert text == "function f(size = 4) {}\n"

    def test_function_typed_parameter(self):
        text, _ = _apply("parameter-annotations", "const f = (onChange: (v: string) => void) => onChange\n")
        assert text == "const f = (onChange) => onChange\n"

    def test_multiline_parameters(self):
        source = "function Item(\n  {\n    className,\n  }: ItemProps,\n  ref: Ref\n) {}\n"
        text, _ = _apply("parameter-annotations", source)
        assert text == "function Item(\n  {\n    className,\n  },\n  ref\n) {}\n"

    def test_plain_calls_untouched(self):
        source = 'cn("a", isOpen ? "b" : "c")\nfoo({ a: 1 })\n'
        assert _apply("parameter-annotations", source) == (source, 0)

    def test_return_annotation(self):
        text, count = _apply("return-annotations", "function Card(props): JSX.Element {\n")
        assert text == "function Card(props) {\n"
        assert count == 1

    def test_arrow_return_annotation(self):
        text, _ = _apply("return-annotations", "const f = (value): string => value\n")
        assert text == "const f = (value) => value\n"

    def test_variable_annotation(self):
        text, count = _apply("variable-annotations", "const ref: React.Ref<HTMLDivElement> = null\n")
        assert text == "const ref = null\n"
        assert count == 1

    def test_uninitialized_let_annotation(self):
        text, _ = _apply("variable-annotations", "let timer: number\n")
        assert text == "let timer\n"


class TestExpressionRules:
    """Tests for casts, satisfies and non-null assertions."""

    def test_as_cast(self):
        text, count = _apply("as-casts", "const input = (event.target as HTMLInputElement).value\n")
        assert text == "const input = (event.target).value\n"
        assert count == 1

    def test_as_const(self):
        text, _ = _apply("as-casts", 'const sizes = ["sm", "lg"] as const\n')
        assert text == 'const sizes = ["sm", "lg"]\n'

    def test_cast_after_object_literal(self):
        source = "const Ctx = React.createContext(\n  {} as FieldContext\n)\n"
        text, count = _apply("as-casts", source)
        assert text == "const Ctx = React.createContext(\n  {}\n)\n"
        assert count == 1

    def test_import_aliases_untouched(self):
        source = 'import { Slot as SlotPrimitive } from "@radix-ui/react-slot"\nexport { Root as Dialog }\n'
        assert _apply("as-casts", source) == (source, 0)

    def test_namespace_import_untouched(self):
        source = 'import * as React from "react"\n'
        assert _apply("as-casts", source) == (source, 0)

    def test_satisfies(self):
        text, _ = _apply("satisfies-clauses", "const config = { a: 1 } satisfies Config\n")
        assert text == "const config = { a: 1 }\n"

    def test_non_null_before_member_access(self):
        text, count = _apply("non-null-assertions", "ref.current!.focus()\n")
        assert text == "ref.current.focus()\n"
        assert count == 1

    def test_non_null_inside_string_untouched(self):
        source = 'const s = "Hi!.there"\n'
        assert _apply("non-null-assertions", source) == (source, 0)


class TestLexicalHelpers:
    """Tests for the scanning helpers."""

    def test_scan_until_balances_brackets(self):
        text = "Record<string, (a: number) => void>, next"
        assert text[scan_until(text, 0, ",")] == ","
        assert scan_until(text, 0, ",") == text.index(", next")

    def test_scan_until_skips_strings(self):
        text = '"a,b", c'
        assert scan_until(text, 0, ",") == 5

    def test_literal_spans(self):
        text = 'a = "x" // note\nb'
        assert literal_spans(text) == [(4, 7), (8, 15)]


class TestDialectNormalizer:
    """Tests for the full normalization pipeline."""

    def test_button_module(self):
        """A registry module comes out as JSX with stand-ins for unsupported libraries."""
        normalizer = DialectNormalizer()

        text, fired = normalizer.normalize_with_report(BUTTON_TSX, module="button")

        assert not text.startswith('"use client"')
        assert "interface" not in text
        assert "VariantProps" not in text
        assert "<HTMLButtonElement" not in text
        assert "React.forwardRef(" in text
        assert "const cva = (base, config = {})" in text
        assert "const Slot = React.forwardRef" in text
        assert 'from "class-variance-authority"' not in text
        assert 'from "@radix-ui/react-slot"' not in text
        assert 'import { cn } from "@/lib/utils"' in text
        assert text.index("const cva") < text.index("const buttonVariants")
        for name in ("strip-directive", "inline-type-specifiers", "interface-declarations",
                     "generic-call-arguments", "class-variance-authority", "radix-slot"):
            assert name in fired

    def test_form_module(self):
        """Generic aliases, generic arrow components and casts on literals are all removed."""
        text = DialectNormalizer().normalize(FORM_TSX, module="form")

        assert "type FormFieldContextValue" not in text
        assert "extends" not in text
        assert "ControllerProps" not in text
        assert "{} as" not in text
        assert 'import {\n  Controller,\n} from "react-hook-form"' in text
        assert "React.createContext(\n  {}\n)" in text
        assert "const FormField = ({\n  ...props\n}) => {" in text
        assert "<Controller {...props} />" in text

    def test_rule_order(self):
        names = DialectNormalizer().rule_names
        assert names[0] == "strip-directive"
        assert names.index("registry-ui-alias") < names.index("type-only-imports")
        assert names.index("non-null-assertions") < names.index("class-variance-authority")

    def test_unmatched_input_passes_through(self):
        source = "const a = 1\nexport default a\n"
        assert DialectNormalizer().normalize(source) == source

    def test_empty_input(self):
        assert DialectNormalizer().normalize("") == ""
        assert DialectNormalizer().normalize(None) == ""

    def test_disabled_substitutions_pass_through(self):
        normalizer = DialectNormalizer(substitutions=[])
        text = normalizer.normalize('import { cva } from "class-variance-authority"\n')
        assert text == 'import { cva } from "class-variance-authority"\n'

    def test_unknown_substitution_rejected(self):
        with pytest.raises(ValueError):
            DialectNormalizer(substitutions=["left-pad"])

    def test_residual_registry_alias_logged(self, caplog):
        """Registry aliases that survive normalization are reported, not raised."""
        with caplog.at_level(logging.WARNING, logger="transform.normalizer"):
            text = DialectNormalizer().normalize('import x from "@/registry/"\n', module="odd")
        assert text == 'import x from "@/registry/"\n'
        assert any("registry alias" in record.getMessage() for record in caplog.records)
