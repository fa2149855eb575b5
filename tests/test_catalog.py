"""Tests for skelkit.catalog – questions, options and layouts."""

from pathlib import Path

import pytest
import yaml

from skelkit.catalog import (
    ConstraintStage,
    InstallLayout,
    OptionCatalog,
    QuestionId,
    default_catalog,
    normalize_code,
)
from skelkit.errors import InvalidOption, UnknownQuestion


# ===========================================================================
# Built-in catalog
# ===========================================================================


class TestDefaultCatalog:
    def test_question_order(self) -> None:
        assert default_catalog().question_ids == [
            "install-type",
            "container",
            "router",
            "template-engine",
            "error-handler",
        ]

    def test_is_cached(self) -> None:
        assert default_catalog() is default_catalog()

    def test_container_options(self) -> None:
        options = default_catalog().options_for("container")
        assert [(o.code, o.name) for o in options] == [
            (1, "Aura.Di"),
            (2, "Pimple"),
            (3, "Laminas Servicemanager"),
            (4, "Auryn"),
            (5, "Symfony DI Container"),
            (6, "PHP-DI"),
            (7, "Chubbyphp Container"),
        ]

    def test_router_options(self) -> None:
        options = default_catalog().options_for(QuestionId.ROUTER)
        assert [o.name for o in options] == ["Aura.Router", "FastRoute", "Laminas Router"]
        assert options[1].docs == "https://github.com/nikic/FastRoute"
        assert all(o.provider for o in options)

    def test_renderer_options(self) -> None:
        options = default_catalog().options_for("template-engine")
        assert [o.name for o in options] == ["Plates", "Twig", "Laminas View"]
        assert options[1].files["{template_dir}/app/home-page.html.twig"] == "twig-home-page"

    def test_codes_unique_per_question(self) -> None:
        catalog = default_catalog()
        for question_id in catalog.question_ids:
            codes = catalog.question(question_id).codes
            assert len(codes) == len(set(codes)), question_id

    def test_every_option_has_docs(self) -> None:
        catalog = default_catalog()
        for question_id in catalog.question_ids:
            for option in catalog.options_for(question_id):
                assert option.name
                assert option.docs

    def test_required_questions(self) -> None:
        catalog = default_catalog()
        required = [q for q in catalog.question_ids if catalog.question(q).required]
        assert required == ["install-type", "container", "router"]

    def test_laminas_view_requires_servicemanager(self) -> None:
        laminas_view = default_catalog().question("template-engine").find(3)
        [constraint] = laminas_view.constraints_for(ConstraintStage.ANSWER)
        assert constraint.question == "container"
        assert constraint.codes == (3,)

    def test_auryn_needs_renderer_at_finalize(self) -> None:
        auryn = default_catalog().question("container").find(4)
        assert auryn.constraints_for(ConstraintStage.ANSWER) == []
        [constraint] = auryn.constraints_for(ConstraintStage.FINALIZE)
        assert constraint.question == "template-engine"
        assert constraint.satisfied_by(2)
        assert not constraint.satisfied_by(None)

    def test_unknown_question(self) -> None:
        with pytest.raises(UnknownQuestion) as exc:
            default_catalog().question("database")
        assert exc.value.question == "database"

    def test_find_by_provider(self) -> None:
        option = default_catalog().find_by_provider("router", "Mezzio\\Router\\FastRouteRouter\\ConfigProvider")
        assert option is not None and option.code == 2
        assert default_catalog().find_by_provider("router", "Mezzio\\ConfigProvider") is None

    def test_find_by_target(self) -> None:
        option = default_catalog().find_by_target("container", "DI\\Container")
        assert option is not None and option.name == "PHP-DI"


# ===========================================================================
# Layouts
# ===========================================================================


class TestLayouts:
    def test_flat(self) -> None:
        spec = default_catalog().layout("flat")
        assert spec.aggregator == "config/config.php"
        assert spec.config_dir == "config"
        assert spec.autoload == "src/App/"

    def test_modular(self) -> None:
        spec = default_catalog().layout(InstallLayout.MODULAR)
        assert spec.aggregator == "config/config.php"
        assert spec.resolve("{template_dir}/app/home-page.phtml") == "src/App/templates/app/home-page.phtml"
        assert spec.resolve("{source_dir}/ConfigProvider.php") == "src/App/src/ConfigProvider.php"

    def test_unknown_layout(self) -> None:
        with pytest.raises(InvalidOption):
            default_catalog().layout("minimal")


# ===========================================================================
# normalize_code
# ===========================================================================


class TestNormalizeCode:
    @pytest.mark.parametrize("raw, expected", [
        (3, 3),
        ("3", 3),
        (" 3 ", 3),
        ("flat", "flat"),
        ("n", "n"),
        (QuestionId.ROUTER, "router"),
    ])
    def test_values(self, raw, expected) -> None:
        assert normalize_code(raw) == expected

    def test_bool_rejected(self) -> None:
        with pytest.raises(InvalidOption):
            normalize_code(True)


# ===========================================================================
# Loading a catalog from YAML
# ===========================================================================


def _write_catalog(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


class TestCatalogFromYaml:
    def test_load(self, tmp_path: Path) -> None:
        path = _write_catalog(tmp_path / "catalog.yaml", {
            "version": 2,
            "layouts": [{
                "code": "flat",
                "aggregator": "config/config.php",
                "source_dir": "src/App",
                "template_dir": "templates",
                "autoload": "src/App/",
            }],
            "questions": [{
                "id": "router",
                "required": True,
                "options": [
                    {"code": "1", "name": "FastRoute", "docs": "https://example.org",
                     "provider": "Mezzio\\Router\\FastRouteRouter\\ConfigProvider",
                     "packages": {"mezzio/mezzio-fastroute": "^3.0"}},
                ],
            }, {
                "id": "template-engine",
                "options": [
                    {"code": 1, "name": "Plates",
                     "constraints": [{"question": "router", "codes": ["1"]}]},
                ],
            }],
        })

        catalog = OptionCatalog.from_yaml(path)
        assert catalog.version == 2
        assert catalog.question_ids == ["router", "template-engine"]
        router = catalog.question("router").find(1)
        assert router.packages == {"mezzio/mezzio-fastroute": "^3.0"}
        plates = catalog.question("template-engine").find(1)
        assert plates.constraints[0].codes == (1,)
        assert plates.constraints[0].stage is ConstraintStage.ANSWER

    def test_duplicate_codes_rejected(self, tmp_path: Path) -> None:
        path = _write_catalog(tmp_path / "catalog.yaml", {
            "questions": [{
                "id": "router",
                "options": [{"code": 1, "name": "A"}, {"code": "1", "name": "B"}],
            }],
        })
        with pytest.raises(ValueError, match="Duplicate"):
            OptionCatalog.from_yaml(path)
