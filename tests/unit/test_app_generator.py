"""
Unit tests for the Next.js app generator.
"""
import json
import pytest

from ai_dev_team.core.app_generator import AppGenerator, generate_files
from ai_dev_team.core.exceptions import SecurityError
from ai_dev_team.core.models import AppOutput


BASE_PATHS = [
    "package.json",
    "src/app/page.tsx",
    "src/app/layout.tsx",
    "src/app/globals.css",
    "src/components/TodoApp.tsx",
    "src/app/api/todos/route.ts",
]

STRIPE_PATHS = [
    "src/app/api/create-checkout-session/route.ts",
    "src/components/CheckoutButton.tsx",
    ".env.local.example",
    "docs/payments.md",
]


def make_output(payment_code=None, name="app-test"):
    return AppOutput(
        name=name,
        requirements={"title": "Todo", "features": ["add", "remove"]},
        frontend_code="// frontend",
        backend_code="// backend",
        payment_code=payment_code,
    )


class TestGenerateFiles:

    def test_base_project(self):
        paths = [f.path for f in generate_files(make_output())]

        assert paths[:6] == BASE_PATHS
        for path in ("tsconfig.json", "README.md", "docs/requirements.md", "docs/frontend.md", "docs/backend.md"):
            assert path in paths
        for path in STRIPE_PATHS:
            assert path not in paths

    def test_package_json_without_stripe(self):
        files = {f.path: f.content for f in generate_files(make_output())}

        package = json.loads(files["package.json"])
        assert package["name"] == "app-test"
        assert "next" in package["dependencies"]
        assert "stripe" not in package["dependencies"]
        assert "CheckoutButton" not in files["src/app/page.tsx"]

    def test_stripe_project(self):
        files = {f.path: f.content for f in generate_files(make_output(payment_code="// stripe"))}

        for path in STRIPE_PATHS:
            assert path in files
        assert "stripe" in json.loads(files["package.json"])["dependencies"]
        assert "<CheckoutButton />" in files["src/app/page.tsx"]
        assert "Stripe payment integration" in files["README.md"]
        assert files["docs/payments.md"] == "# Payments\n\n// stripe\n"

    def test_empty_payment_code_means_no_stripe(self):
        paths = [f.path for f in generate_files(make_output(payment_code=""))]

        assert "docs/payments.md" not in paths

    def test_structured_output_rendered_as_json(self):
        files = {f.path: f.content for f in generate_files(make_output())}

        assert '"title": "Todo"' in files["docs/requirements.md"]


class TestAppGenerator:

    def test_write(self, temp_workspace):
        app_dir = AppGenerator(temp_workspace / "output").write(make_output(payment_code="// stripe"))

        assert app_dir == (temp_workspace / "output" / "app-test").resolve()
        assert (app_dir / "src" / "components" / "TodoApp.tsx").exists()
        assert (app_dir / ".env.local.example").exists()
        assert (app_dir / "docs" / "frontend.md").read_text(encoding="utf-8") == "# Frontend\n\n// frontend\n"

    def test_traversal_rejected(self, temp_workspace):
        generator = AppGenerator(temp_workspace / "output")

        with pytest.raises(SecurityError):
            generator.write(make_output(name="../escaped"))
        assert not (temp_workspace / "escaped").exists()
