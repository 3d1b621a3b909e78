from __future__ import annotations

import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[3]
SRC_ROOT = REPO_ROOT / "tools" / "blanket_trait_codegen" / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from blanket_trait_codegen.cli import main

SOURCE = """#[blanket_trait(impl<T: A> C for T where T::AA: Send)]
pub trait C {
    fn a(&self) -> i32 {
        self.aa()
    }
}
"""

EXPECTED = """pub trait C {
    fn a(&self) -> i32;
}

impl<T: A> C for T where T::AA: Send {
    fn a(&self) -> i32 {
        self.aa()
    }
}
"""

DEFAULTLESS = "#[blanket_trait(impl<T> G for T)]\ntrait G {\n    fn a(&self);\n}\n"


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.input_path = self.root / "src" / "lib.rs"
        self.input_path.parent.mkdir(parents=True, exist_ok=True)
        self.input_path.write_text(SOURCE, encoding="utf-8")
        self.output_path = self.root / "generated" / "lib.rs"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def run_main(self, argv: list[str]) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            exit_code = main(argv)
        return exit_code, stdout.getvalue(), stderr.getvalue()

    def test_expand_writes_output(self) -> None:
        exit_code, _, stderr = self.run_main(
            ["expand", "--input", str(self.input_path), "--output", str(self.output_path)]
        )
        self.assertEqual(exit_code, 0)
        self.assertEqual(self.output_path.read_text(encoding="utf-8"), EXPECTED)
        self.assertIn("Expanded 1 #[blanket_trait] trait(s)", stderr)
        self.assertIn("in strict mode.", stderr)

    def test_expand_to_stdout(self) -> None:
        exit_code, stdout, _ = self.run_main(["expand", "--input", str(self.input_path), "--mode", "relaxed"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, EXPECTED)

    def test_check_reports_drift(self) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(EXPECTED, encoding="utf-8")
        argv = ["expand", "--input", str(self.input_path), "--output", str(self.output_path), "--check"]

        exit_code, stdout, _ = self.run_main(argv)
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "")

        self.output_path.write_text("pub trait C {}\n", encoding="utf-8")
        exit_code, stdout, _ = self.run_main(argv)
        self.assertEqual(exit_code, 1)
        self.assertIn("-pub trait C {}", stdout)
        self.assertEqual(self.output_path.read_text(encoding="utf-8"), "pub trait C {}\n")

    def test_dry_run_does_not_write(self) -> None:
        exit_code, _, _ = self.run_main(
            ["expand", "--input", str(self.input_path), "--output", str(self.output_path), "--dry-run"]
        )
        self.assertEqual(exit_code, 0)
        self.assertFalse(self.output_path.exists())

    def test_check_requires_output(self) -> None:
        exit_code, _, stderr = self.run_main(["expand", "--input", str(self.input_path), "--check"])
        self.assertEqual(exit_code, 2)
        self.assertIn("blanket_trait error: --check requires --output.", stderr)

    def test_missing_default_is_an_error(self) -> None:
        self.input_path.write_text(DEFAULTLESS, encoding="utf-8")
        exit_code, stdout, stderr = self.run_main(["expand", "--input", str(self.input_path)])
        self.assertEqual(exit_code, 2)
        self.assertEqual(stdout, "")
        self.assertIn("blanket_trait error: 3:5: Expected function body (fn a)", stderr)

    def test_config_selects_relaxed_mode(self) -> None:
        self.input_path.write_text(DEFAULTLESS, encoding="utf-8")
        config_path = self.root / "blanket_trait.json"
        config_path.write_text(json.dumps({"mode": "relaxed"}), encoding="utf-8")
        argv = ["expand", "--input", str(self.input_path), "--config", str(config_path)]

        exit_code, stdout, stderr = self.run_main(argv)
        self.assertEqual(exit_code, 0)
        self.assertIn("impl<T> G for T {\n    fn a(&self);\n}", stdout)
        self.assertIn("in relaxed mode.", stderr)

        exit_code, _, stderr = self.run_main(argv + ["--check-defaults"])
        self.assertEqual(exit_code, 2)
        self.assertIn("Expected function body (fn a)", stderr)

    def test_invalid_config(self) -> None:
        config_path = self.root / "blanket_trait.json"
        config_path.write_text("[]", encoding="utf-8")
        exit_code, _, stderr = self.run_main(
            ["expand", "--input", str(self.input_path), "--config", str(config_path)]
        )
        self.assertEqual(exit_code, 2)
        self.assertIn("must be an object", stderr)

    def test_split_command(self) -> None:
        item_path = self.root / "item.rs"
        item_path.write_text("trait D { type X = T::AA; }", encoding="utf-8")
        exit_code, stdout, _ = self.run_main(
            ["split", "--header", "impl<T: A> D for T", "--input", str(item_path)]
        )
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "trait D { type X; }\n\nimpl<T: A> D for T { type X = T::AA; }\n")

    def test_split_command_reports_header_errors(self) -> None:
        item_path = self.root / "item.rs"
        item_path.write_text("trait D { type X = T::AA; }", encoding="utf-8")
        exit_code, _, stderr = self.run_main(["split", "--header", "impl<T: A> D T", "--input", str(item_path)])
        self.assertEqual(exit_code, 2)
        self.assertIn("expected `for`", stderr)


if __name__ == "__main__":
    unittest.main()
