from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[3]
SRC_ROOT = REPO_ROOT / "tools" / "blanket_trait_codegen" / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from blanket_trait_codegen import (
    RELAXED,
    BlanketTraitError,
    ExpandOptions,
    MissingDefaultError,
    TraitParseError,
    expand_source,
    expand_text,
    resolve_options,
)

SOURCE = """use blanket_trait::blanket_trait;

pub trait A {
    type AA;
    fn a() -> i32;
}

#[blanket_trait(impl<T: A> B for T)]
pub trait B {
    fn a(&self) -> i32 {
        T::a()
    }
}

#[blanket_trait(impl<T: A> D for T where T::AA: Send)]
pub trait D {
    type X = T::AA;
    fn a(&self) -> i32 {
        self.aa()
    }
}
"""

EXPECTED = """use blanket_trait::blanket_trait;

pub trait A {
    type AA;
    fn a() -> i32;
}

pub trait B {
    fn a(&self) -> i32;
}

impl<T: A> B for T {
    fn a(&self) -> i32 {
        T::a()
    }
}

pub trait D {
    type X;
    fn a(&self) -> i32;
}

impl<T: A> D for T where T::AA: Send {
    type X = T::AA;
    fn a(&self) -> i32 {
        self.aa()
    }
}
"""

NESTED = """mod outer {
    #[blanket_trait::blanket_trait(impl<T: Clone> Dup for T)]
    pub trait Dup {
        fn dup(&self) -> Self {
            self.clone()
        }
    }
}
"""

NESTED_EXPECTED = """mod outer {
    pub trait Dup {
        fn dup(&self) -> Self;
    }

    impl<T: Clone> Dup for T {
        fn dup(&self) -> Self {
            self.clone()
        }
    }
}
"""


class ExpandTextTests(unittest.TestCase):
    def test_expands_annotated_traits_only(self) -> None:
        output, count = expand_text(SOURCE)
        self.assertEqual(count, 2)
        self.assertEqual(output, EXPECTED)

    def test_expand_source_returns_text_only(self) -> None:
        self.assertEqual(expand_source(SOURCE), EXPECTED)
        self.assertEqual(expand_source(NESTED, ExpandOptions(mode=RELAXED)), NESTED_EXPECTED)

    def test_relaxed_mode_matches_strict_output(self) -> None:
        output, count = expand_text(SOURCE, ExpandOptions(mode=RELAXED))
        self.assertEqual(count, 2)
        self.assertEqual(output, EXPECTED)

    def test_nested_module_keeps_indentation(self) -> None:
        output, count = expand_text(NESTED)
        self.assertEqual(count, 1)
        self.assertEqual(output, NESTED_EXPECTED)

    def test_source_without_attribute_is_unchanged(self) -> None:
        source = "// nothing here\n#[derive(Debug)]\nstruct S {   x: u8 }\n\n"
        self.assertEqual(expand_text(source), (source, 0))
        self.assertEqual(expand_source(source), source)

    def test_custom_attribute_name(self) -> None:
        source = "#[with_defaults(impl<T> G for T)]\ntrait G { const N: u8 = 1; }\n"
        options = ExpandOptions(attribute="with_defaults")
        output, count = expand_text(source, options)
        self.assertEqual(count, 1)
        self.assertEqual(output, "trait G { const N: u8; }\n\nimpl<T> G for T { const N: u8 = 1; }\n")
        self.assertEqual(expand_text(source), (source, 0))

    def test_attribute_on_non_trait_item(self) -> None:
        with self.assertRaises(TraitParseError) as ctx:
            expand_text("#[blanket_trait(impl<T> S for T)]\nstruct S { x: u8 }\n")
        self.assertEqual(ctx.exception.message, "#[blanket_trait] must be applied to a trait item")

    def test_missing_default_in_relaxed_mode(self) -> None:
        source = "#[blanket_trait(impl<T> G for T)]\ntrait G { fn a(&self); }\n"
        output, _ = expand_text(source, ExpandOptions(mode=RELAXED))
        self.assertEqual(output, "trait G { fn a(&self); }\n\nimpl<T> G for T { fn a(&self); }\n")
        with self.assertRaises(MissingDefaultError):
            expand_text(source, ExpandOptions(mode=RELAXED, check_defaults=True))
        with self.assertRaises(MissingDefaultError):
            expand_text(source)


class ResolveOptionsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        self.assertEqual(resolve_options({}), ExpandOptions())
        options = resolve_options({})
        self.assertEqual(options.mode, "strict")
        self.assertFalse(options.check_defaults)
        self.assertEqual(options.attribute, "blanket_trait")

    def test_explicit_values(self) -> None:
        options = resolve_options({"mode": "relaxed", "check_defaults": True, "attribute": "defaults"})
        self.assertEqual(options, ExpandOptions(mode="relaxed", check_defaults=True, attribute="defaults"))

    def test_rejects_invalid_values(self) -> None:
        cases = [
            ({"modes": "strict"}, "Unknown config keys: modes"),
            ({"mode": "fast"}, "config.mode must be one of: strict, relaxed"),
            ({"check_defaults": "yes"}, "config.check_defaults must be boolean"),
            ({"attribute": "blanket-trait"}, "config.attribute must be an identifier"),
        ]
        for config, message in cases:
            with self.subTest(config=config):
                with self.assertRaises(BlanketTraitError) as ctx:
                    resolve_options(config)
                self.assertIn(message, str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
