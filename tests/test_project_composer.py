"""Tests for project composition and component export extraction."""

import json

from constants import Constants
from models import PackageRef, ResolutionResult
from project.composer import compose_project
from project.exports import existing_components, extract_component_exports
from project.templates import load_base_template, package_json


def _result(files, deps=()):
    return ResolutionResult(files=dict(files), external_deps=list(deps))


class TestBaseTemplate:
    """Tests for the base project template."""

    def test_template_files(self):
        files = load_base_template("demo")

        assert "/src/lib/utils.js" in files
        assert "export function cn(" in files["/src/lib/utils.js"]
        assert "<title>demo</title>" in files["/index.html"]
        assert '"@": path.resolve(__dirname, "./src")' in files["/vite.config.js"]

    def test_package_json(self):
        manifest = json.loads(package_json("demo"))
        assert manifest["name"] == "demo"
        assert "react" in manifest["dependencies"]


class TestComposeProject:
    """Tests for compose_project."""

    def test_overlay_precedence(self):
        base = {"/src/components/ui/button.jsx": "old", "/README.md": "keep", "/package.json": "{}"}
        result = _result({"/src/components/ui/button.jsx": "export const Button = () => null\n"})

        composed = compose_project(result, base_files=base, baseline_deps={})

        assert composed.files["/src/components/ui/button.jsx"].startswith("export const Button")
        assert composed.files["/README.md"] == "keep"
        assert composed.resolution is result

    def test_manifest_merged(self):
        result = _result(
            {"/src/components/ui/table.jsx": "export { Table }\n"},
            [PackageRef("date-lib")],
        )

        composed = compose_project(result)

        deps = json.loads(composed.files[Constants.MANIFEST_PATH])["dependencies"]
        assert deps["date-lib"] == "latest"
        for name in Constants.BASELINE_DEPENDENCIES:
            assert name in deps
        assert "date-lib" in composed.added_dependencies
        assert composed.manifest == composed.files[Constants.MANIFEST_PATH]

    def test_missing_manifest_is_created(self):
        composed = compose_project(_result({}, [PackageRef("a")]), base_files={}, baseline_deps={})
        assert json.loads(composed.manifest) == {"dependencies": {"a": "latest"}}

    def test_component_exports(self):
        result = _result({
            "/src/components/ui/button.jsx": "const Button = 1;\nexport { Button, buttonVariants as variants };\n",
            "/src/components/ui/card.jsx": "export const Card = () => null;\nexport function CardTitle() {}\n",
        })

        composed = compose_project(result, base_files={}, baseline_deps={})

        assert composed.component_exports == {
            "button": ["Button", "buttonVariants"],
            "card": ["Card", "CardTitle"],
        }


class TestExports:
    """Tests for export extraction helpers."""

    def test_existing_components(self):
        files = {
            "/src/components/ui/card.jsx": "",
            "/src/components/ui/button.tsx": "",
            "/src/components/ui/nested/x.jsx": "",
            "/src/components/ui/readme.md": "",
            "/src/App.jsx": "",
        }
        assert existing_components(files) == ["button", "card"]

    def test_type_exports_skipped(self):
        files = {"/src/components/ui/a.tsx": "export { type Props, A }\n"}
        assert extract_component_exports(files) == {"a": ["A"]}

    def test_components_without_exports_omitted(self):
        files = {"/src/components/ui/a.jsx": "const A = 1;\n"}
        assert extract_component_exports(files) == {}

    def test_custom_components_dir(self):
        files = {"/app/ui/a.js": "export default function A() {}\n"}
        assert extract_component_exports(files, "/app/ui") == {"a": ["A"]}
