"""Option catalog: the fixed set of questions and selectable options.

The installer asks a handful of questions:
- install-type: physical layout of the generated project (flat | modular)
- container: PSR-11 dependency-injection container
- router: HTTP router
- template-engine: template renderer (optional)
- error-handler: development error handler (optional)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml

from .errors import InvalidOption, UnknownQuestion

Code = Union[int, str]

# Answer accepted by optional questions to skip them.
DECLINE_ANSWER = "n"


class QuestionId(str, Enum):
    """Identifiers of the installer questions."""

    INSTALL_TYPE = "install-type"
    CONTAINER = "container"
    ROUTER = "router"
    TEMPLATE_ENGINE = "template-engine"
    ERROR_HANDLER = "error-handler"


class InstallLayout(str, Enum):
    """Physical directory arrangement of the generated project."""

    FLAT = "flat"
    MODULAR = "modular"


class ConstraintStage(str, Enum):
    """When a constraint is evaluated."""

    ANSWER = "answer"
    FINALIZE = "finalize"


def normalize_code(code: Any) -> Code:
    """Normalise a raw answer: ``"3"``, ``" 3 "`` and ``3`` are the same code."""
    if isinstance(code, bool):
        raise InvalidOption(f"Invalid answer: {code!r}", code=code)
    if isinstance(code, int):
        return code
    if isinstance(code, Enum):
        code = code.value
    text = str(code).strip()
    if text.isdigit():
        return int(text)
    return text


@dataclass(frozen=True)
class Constraint:
    """Restricts an option to a set of answers of another question."""

    question: str
    codes: tuple[Code, ...]
    stage: ConstraintStage = ConstraintStage.ANSWER
    reason: str = ""

    def satisfied_by(self, code: Optional[Code]) -> bool:
        return code is not None and code in self.codes

    @classmethod
    def from_dict(cls, data: dict) -> "Constraint":
        return cls(
            question=str(data["question"]),
            codes=tuple(normalize_code(c) for c in data.get("codes", [])),
            stage=ConstraintStage(data.get("stage", ConstraintStage.ANSWER.value)),
            reason=data.get("reason", ""),
        )


@dataclass(frozen=True)
class Option:
    """A selectable answer for one question."""

    code: Code
    name: str
    docs: str = ""
    target: Optional[str] = None
    provider: Optional[str] = None
    packages: dict[str, str] = field(default_factory=dict)
    dev_packages: dict[str, str] = field(default_factory=dict)
    # destination pattern -> skeleton body key
    files: dict[str, str] = field(default_factory=dict)
    constraints: tuple[Constraint, ...] = ()
    custom: bool = False

    def constraints_for(self, stage: ConstraintStage) -> list[Constraint]:
        return [c for c in self.constraints if c.stage == stage]

    @classmethod
    def from_dict(cls, data: dict) -> "Option":
        return cls(
            code=normalize_code(data["code"]),
            name=data["name"],
            docs=data.get("docs", ""),
            target=data.get("target"),
            provider=data.get("provider"),
            packages=dict(data.get("packages", {})),
            dev_packages=dict(data.get("dev_packages", {})),
            files=dict(data.get("files", {})),
            constraints=tuple(Constraint.from_dict(c) for c in data.get("constraints", [])),
        )


@dataclass(frozen=True)
class Question:
    """A question with its ordered options."""

    id: str
    prompt: str
    options: tuple[Option, ...]
    required: bool = False
    default: Optional[Code] = None
    custom_package: bool = False

    @property
    def codes(self) -> list[Code]:
        return [o.code for o in self.options]

    def find(self, code: Code) -> Optional[Option]:
        for option in self.options:
            if option.code == code:
                return option
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        options = tuple(Option.from_dict(o) for o in data.get("options", []))
        codes = [o.code for o in options]
        if len(codes) != len(set(codes)):
            raise ValueError(f"Duplicate option codes in question '{data['id']}'")
        default = data.get("default")
        return cls(
            id=str(data["id"]),
            prompt=data.get("prompt", ""),
            options=options,
            required=bool(data.get("required", False)),
            default=normalize_code(default) if default is not None else None,
            custom_package=bool(data.get("custom_package", False)),
        )


@dataclass(frozen=True)
class LayoutSpec:
    """Where an install layout puts the files that answers touch."""

    code: str
    aggregator: str
    source_dir: str
    template_dir: str
    autoload: str

    @property
    def config_dir(self) -> str:
        return os.path.dirname(self.aggregator)

    def resolve(self, pattern: str) -> str:
        """Expand a destination pattern such as ``{template_dir}/app/home-page.phtml``."""
        return pattern.format(
            aggregator=self.aggregator,
            config_dir=self.config_dir,
            source_dir=self.source_dir,
            template_dir=self.template_dir,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "LayoutSpec":
        return cls(
            code=str(data["code"]),
            aggregator=data["aggregator"],
            source_dir=data["source_dir"],
            template_dir=data["template_dir"],
            autoload=data["autoload"],
        )


class OptionCatalog:
    """Read-only registry of questions, options and layouts."""

    def __init__(self, questions: Iterable[Question], layouts: Iterable[LayoutSpec], version: int = 1):
        self.version = version
        self._questions: dict[str, Question] = {q.id: q for q in questions}
        self._layouts: dict[str, LayoutSpec] = {spec.code: spec for spec in layouts}

    @property
    def question_ids(self) -> list[str]:
        return list(self._questions)

    def question(self, question_id: str) -> Question:
        key = question_id.value if isinstance(question_id, Enum) else question_id
        question = self._questions.get(key)
        if question is None:
            raise UnknownQuestion(f"Unknown question: {key}", question=key)
        return question

    def options_for(self, question_id: str) -> tuple[Option, ...]:
        return self.question(question_id).options

    def layout(self, code: str) -> LayoutSpec:
        key = code.value if isinstance(code, Enum) else code
        spec = self._layouts.get(key)
        if spec is None:
            raise InvalidOption(
                f"Unknown install layout: {key}",
                question=QuestionId.INSTALL_TYPE.value,
                code=key,
            )
        return spec

    def find_by_target(self, question_id: str, target: str) -> Optional[Option]:
        for option in self.options_for(question_id):
            if option.target == target:
                return option
        return None

    def find_by_provider(self, question_id: str, provider: str) -> Optional[Option]:
        for option in self.options_for(question_id):
            if option.provider == provider:
                return option
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "OptionCatalog":
        return cls(
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
            layouts=[LayoutSpec.from_dict(spec) for spec in data.get("layouts", [])],
            version=int(data.get("version", 1)),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "OptionCatalog":
        """Load a catalog from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})


# ---------------------------------------------------------------------------
# Built-in catalog
# ---------------------------------------------------------------------------

LAYOUTS: tuple[LayoutSpec, ...] = (
    LayoutSpec(
        code=InstallLayout.FLAT.value,
        aggregator="config/config.php",
        source_dir="src/App",
        template_dir="templates",
        autoload="src/App/",
    ),
    LayoutSpec(
        code=InstallLayout.MODULAR.value,
        aggregator="config/config.php",
        source_dir="src/App/src",
        template_dir="src/App/templates",
        autoload="src/App/src/",
    ),
)

_LAYOUT_FILES = {
    "{aggregator}": "config-aggregator",
    "public/index.php": "public-index",
    "{source_dir}/ConfigProvider.php": "app-config-provider",
    "{source_dir}/Handler/HomePageHandler.php": "home-page-handler",
    "{source_dir}/Handler/HomePageHandlerFactory.php": "home-page-handler-factory",
    "{source_dir}/Handler/PingHandler.php": "ping-handler",
}

_CONTAINER_FILE = "config/container.php"
_ROUTES_FILES = {"config/routes.php": "routes"}


def _renderer_files(prefix: str, ext: str) -> dict[str, str]:
    return {
        f"{{template_dir}}/app/home-page.{ext}": f"{prefix}-home-page",
        f"{{template_dir}}/error/404.{ext}": f"{prefix}-404",
        f"{{template_dir}}/layout/default.{ext}": f"{prefix}-layout",
    }


QUESTIONS: tuple[Question, ...] = (
    Question(
        id=QuestionId.INSTALL_TYPE.value,
        prompt="What type of installation would you like?",
        required=True,
        default=InstallLayout.FLAT.value,
        options=(
            Option(code="flat", name="Flat", docs="Classic single application layout",
                   files=dict(_LAYOUT_FILES)),
            Option(code="modular", name="Modular", docs="Per-module source, config and templates",
                   files=dict(_LAYOUT_FILES)),
        ),
    ),
    Question(
        id=QuestionId.CONTAINER.value,
        prompt="Which container do you want to use for dependency injection?",
        required=True,
        default=3,
        custom_package=True,
        options=(
            Option(
                code=1,
                name="Aura.Di",
                docs="http://auraphp.com/packages/4.x/Di/",
                target="Aura\\Di\\Container",
                packages={"laminas/laminas-auradi-config": "^2.0"},
                files={_CONTAINER_FILE: "container-aura-di"},
            ),
            Option(
                code=2,
                name="Pimple",
                docs="https://pimple.symfony.com/",
                target="Pimple\\Psr11\\Container",
                packages={"laminas/laminas-pimple-config": "^1.1.1"},
                files={_CONTAINER_FILE: "container-pimple"},
            ),
            Option(
                code=3,
                name="Laminas Servicemanager",
                docs="https://docs.laminas.dev/laminas-servicemanager/",
                target="Laminas\\ServiceManager\\ServiceManager",
                packages={"laminas/laminas-servicemanager": "^3.4"},
                files={_CONTAINER_FILE: "container-laminas-servicemanager"},
            ),
            Option(
                code=4,
                name="Auryn",
                docs="https://github.com/rdlowrey/Auryn",
                target="Northwoods\\Container\\InjectorContainer",
                packages={"northwoods/container": "^3.0"},
                files={_CONTAINER_FILE: "container-auryn"},
                constraints=(
                    Constraint(
                        question=QuestionId.TEMPLATE_ENGINE.value,
                        codes=(1, 2, 3),
                        stage=ConstraintStage.FINALIZE,
                        reason="the Auryn PSR-11 wrapper cannot serve invokable services; "
                               "select a template engine",
                    ),
                ),
            ),
            Option(
                code=5,
                name="Symfony DI Container",
                docs="https://symfony.com/doc/current/service_container.html",
                target="Symfony\\Component\\DependencyInjection\\ContainerBuilder",
                packages={"jsoumelidis/zend-sf-di-config": "^0.4"},
                files={_CONTAINER_FILE: "container-sf-di"},
            ),
            Option(
                code=6,
                name="PHP-DI",
                docs="http://php-di.org",
                target="DI\\Container",
                packages={"elie29/zend-phpdi-config": "^6.0"},
                files={_CONTAINER_FILE: "container-php-di"},
            ),
            Option(
                code=7,
                name="Chubbyphp Container",
                docs="https://github.com/chubbyphp/chubbyphp-container",
                target="Chubbyphp\\Container\\Container",
                packages={"chubbyphp/chubbyphp-laminas-config": "^1.0"},
                files={_CONTAINER_FILE: "container-chubbyphp"},
            ),
        ),
    ),
    Question(
        id=QuestionId.ROUTER.value,
        prompt="Which router do you want to use?",
        required=True,
        default=2,
        custom_package=True,
        options=(
            Option(
                code=1,
                name="Aura.Router",
                docs="http://auraphp.com/packages/3.x/Router/",
                target="Mezzio\\Router\\AuraRouter",
                provider="Mezzio\\Router\\AuraRouter\\ConfigProvider",
                packages={"mezzio/mezzio-aurarouter": "^3.0"},
                files=dict(_ROUTES_FILES),
            ),
            Option(
                code=2,
                name="FastRoute",
                docs="https://github.com/nikic/FastRoute",
                target="Mezzio\\Router\\FastRouteRouter",
                provider="Mezzio\\Router\\FastRouteRouter\\ConfigProvider",
                packages={"mezzio/mezzio-fastroute": "^3.0"},
                files=dict(_ROUTES_FILES),
            ),
            Option(
                code=3,
                name="Laminas Router",
                docs="https://docs.laminas.dev/laminas-router/",
                target="Mezzio\\Router\\LaminasRouter",
                provider="Mezzio\\Router\\LaminasRouter\\ConfigProvider",
                packages={"mezzio/mezzio-laminasrouter": "^3.0"},
                files=dict(_ROUTES_FILES),
            ),
        ),
    ),
    Question(
        id=QuestionId.TEMPLATE_ENGINE.value,
        prompt="Which template engine do you want to use?",
        default=DECLINE_ANSWER,
        custom_package=True,
        options=(
            Option(
                code=1,
                name="Plates",
                docs="https://platesphp.com/",
                target="Mezzio\\Plates\\PlatesRenderer",
                provider="Mezzio\\Plates\\ConfigProvider",
                packages={"mezzio/mezzio-platesrenderer": "^2.2"},
                files=_renderer_files("plates", "phtml"),
            ),
            Option(
                code=2,
                name="Twig",
                docs="https://twig.symfony.com/",
                target="Mezzio\\Twig\\TwigRenderer",
                provider="Mezzio\\Twig\\ConfigProvider",
                packages={"mezzio/mezzio-twigrenderer": "^2.6"},
                files=_renderer_files("twig", "html.twig"),
            ),
            Option(
                code=3,
                name="Laminas View",
                docs="https://docs.laminas.dev/laminas-view/",
                target="Mezzio\\LaminasView\\LaminasViewRenderer",
                provider="Mezzio\\LaminasView\\ConfigProvider",
                packages={"mezzio/mezzio-laminasviewrenderer": "^2.2"},
                files=_renderer_files("laminas-view", "phtml"),
                constraints=(
                    Constraint(
                        question=QuestionId.CONTAINER.value,
                        codes=(3,),
                        reason="laminas-view requires laminas-servicemanager",
                    ),
                ),
            ),
        ),
    ),
    Question(
        id=QuestionId.ERROR_HANDLER.value,
        prompt="Which error handler do you want to use during development?",
        default=DECLINE_ANSWER,
        custom_package=True,
        options=(
            Option(
                code=1,
                name="Whoops",
                docs="https://filp.github.io/whoops/",
                target="Whoops\\Run",
                dev_packages={"filp/whoops": "^2.7.1"},
                files={"config/autoload/development.local.php.dist": "whoops-development"},
            ),
        ),
    ),
)


@lru_cache(maxsize=1)
def default_catalog() -> OptionCatalog:
    """Return the process-wide built-in catalog."""
    return OptionCatalog(QUESTIONS, LAYOUTS)
