"""Skeleton project files and the file bodies that options copy into a project.

Bodies use ``%%name%%`` placeholders; PHP and template syntax already claim
``{}`` and ``{{ }}``.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Iterable, Optional

from .fileio import atomic_write

_PLACEHOLDER_RE = re.compile(r"%%(?P<name>[a-z_]+)%%")

SKELKIT_EXTRA_KEY = "skelkit"


def base_manifest(catalog_version: int = 1) -> dict:
    """composer.json of a freshly created project, before any answer."""
    return {
        "name": "mezzio/mezzio-skeleton",
        "description": "Laminas mezzio skeleton. Begin developing PSR-15 middleware applications in seconds!",
        "type": "project",
        "license": "BSD-3-Clause",
        "config": {
            "sort-packages": True,
        },
        "require": {
            "php": "~8.1.0 || ~8.2.0 || ~8.3.0",
            "laminas/laminas-component-installer": "^3.2",
            "laminas/laminas-config-aggregator": "^1.6",
            "laminas/laminas-diactoros": "^3.0",
            "laminas/laminas-stdlib": "^3.6",
            "mezzio/mezzio": "^3.7",
            "mezzio/mezzio-helpers": "^5.7",
        },
        "require-dev": {
            "phpunit/phpunit": "^10.2",
        },
        "autoload": {
            "psr-4": {},
        },
        "autoload-dev": {
            "psr-4": {
                "AppTest\\": "test/AppTest/",
            },
        },
        "extra": {
            SKELKIT_EXTRA_KEY: {
                "catalog-version": catalog_version,
            },
        },
    }


FILES: dict[str, str] = {}

FILES["config-aggregator"] = """\
<?php

declare(strict_types=1);

use Laminas\\ConfigAggregator\\ArrayProvider;
use Laminas\\ConfigAggregator\\ConfigAggregator;
use Laminas\\ConfigAggregator\\PhpFileProvider;

// To enable or disable caching, set the `ConfigAggregator::ENABLE_CACHE` boolean in
// `config/autoload/local.php`.
$cacheConfig = [
    'config_cache_path' => 'data/cache/config-cache.php',
];

$aggregator = new ConfigAggregator([
    \\Mezzio\\Helper\\ConfigProvider::class,
    \\Mezzio\\ConfigProvider::class,
    \\Mezzio\\Router\\ConfigProvider::class,
    \\Laminas\\Diactoros\\ConfigProvider::class,

    // Swoole config to overwrite some services (if installed)
    class_exists(\\Mezzio\\Swoole\\ConfigProvider::class)
        ? \\Mezzio\\Swoole\\ConfigProvider::class
        : function (): array {
            return [];
        },

    // Default App module config
    App\\ConfigProvider::class,

    // Load application config in a pre-defined order in such a way that local settings
    // overwrite global settings. (Loaded as first to last):
    //   - `global.php`
    //   - `*.global.php`
    //   - `local.php`
    //   - `*.local.php`
    new PhpFileProvider('config/autoload/{{,*.}global,{,*.}local}.php'),

    // Load development config if it exists
    new PhpFileProvider('config/development.config.php'),
    new ArrayProvider($cacheConfig),
], $cacheConfig['config_cache_path']);

return $aggregator->getMergedConfig();
"""

FILES["public-index"] = """\
<?php

declare(strict_types=1);

// Delegate static file requests back to the PHP built-in webserver
if (PHP_SAPI === 'cli-server' && $_SERVER['SCRIPT_FILENAME'] !== __FILE__) {
    return false;
}

chdir(dirname(__DIR__));
require 'vendor/autoload.php';

/**
 * Self-called anonymous function that creates its own scope and keeps the global namespace clean.
 */
(function () {
    /** @var \\Psr\\Container\\ContainerInterface $container */
    $container = require 'config/container.php';

    /** @var \\Mezzio\\Application $app */
    $app     = $container->get(\\Mezzio\\Application::class);
    $factory = $container->get(\\Mezzio\\MiddlewareFactory::class);

    (require 'config/pipeline.php')($app, $factory, $container);
    (require 'config/routes.php')($app, $factory, $container);

    $app->run();
})();
"""

FILES["app-config-provider"] = """\
<?php

declare(strict_types=1);

namespace App;

/**
 * The configuration provider for the App module
 */
class ConfigProvider
{
    public function __invoke(): array
    {
        return [
            'dependencies' => $this->getDependencies(),
            'templates'    => $this->getTemplates(),
        ];
    }

    public function getDependencies(): array
    {
        return [
            'invokables' => [
                Handler\\PingHandler::class => Handler\\PingHandler::class,
            ],
            'factories'  => [
                Handler\\HomePageHandler::class => Handler\\HomePageHandlerFactory::class,
            ],
        ];
    }

    public function getTemplates(): array
    {
        return [
            'paths' => [
                'app'    => ['%%template_dir%%/app'],
                'error'  => ['%%template_dir%%/error'],
                'layout' => ['%%template_dir%%/layout'],
            ],
        ];
    }
}
"""

FILES["home-page-handler"] = """\
<?php

declare(strict_types=1);

namespace App\\Handler;

use Laminas\\Diactoros\\Response\\HtmlResponse;
use Laminas\\Diactoros\\Response\\JsonResponse;
use Mezzio\\Template\\TemplateRendererInterface;
use Psr\\Http\\Message\\ResponseInterface;
use Psr\\Http\\Message\\ServerRequestInterface;
use Psr\\Http\\Server\\RequestHandlerInterface;

class HomePageHandler implements RequestHandlerInterface
{
    /**
     * @param array<string, string> $containerInfo containerName, containerDocs
     * @param array<string, string> $routerInfo    routerName, routerDocs
     * @param array<string, string> $templateInfo  templateName, templateDocs
     */
    public function __construct(
        private array $containerInfo,
        private array $routerInfo,
        private ?TemplateRendererInterface $template = null,
        private array $templateInfo = []
    ) {
    }

    public function handle(ServerRequestInterface $request): ResponseInterface
    {
        $data = $this->containerInfo + $this->routerInfo + $this->templateInfo;

        if ($this->template === null) {
            return new JsonResponse([
                'welcome' => 'Congratulations! You have installed the mezzio skeleton application.',
                'docsUrl' => 'https://docs.mezzio.dev/mezzio/',
            ] + $data);
        }

        return new HtmlResponse($this->template->render('app::home-page', $data));
    }
}
"""

FILES["home-page-handler-factory"] = """\
<?php

declare(strict_types=1);

namespace App\\Handler;

use Mezzio\\Router\\RouterInterface;
use Mezzio\\Template\\TemplateRendererInterface;
use Psr\\Container\\ContainerInterface;
use Psr\\Http\\Server\\RequestHandlerInterface;

use function get_class;

class HomePageHandlerFactory
{
    private const CONTAINERS = [
%%container_map%%
    ];

    private const ROUTERS = [
%%router_map%%
    ];

    private const TEMPLATES = [
%%template_map%%
    ];

    public function __invoke(ContainerInterface $container): RequestHandlerInterface
    {
        $router   = $container->get(RouterInterface::class);
        $template = $container->has(TemplateRendererInterface::class)
            ? $container->get(TemplateRendererInterface::class)
            : null;

        return new HomePageHandler(
            self::describe(self::CONTAINERS, $container, 'container'),
            self::describe(self::ROUTERS, $router, 'router'),
            $template,
            $template === null ? [] : self::describe(self::TEMPLATES, $template, 'template')
        );
    }

    /**
     * @param array<class-string, array{string, string}> $known
     * @return array<string, string>
     */
    private static function describe(array $known, object $service, string $prefix): array
    {
        foreach ($known as $class => [$name, $docs]) {
            if ($service instanceof $class) {
                return [$prefix . 'Name' => $name, $prefix . 'Docs' => $docs];
            }
        }

        return [$prefix . 'Name' => get_class($service), $prefix . 'Docs' => ''];
    }
}
"""

FILES["ping-handler"] = """\
<?php

declare(strict_types=1);

namespace App\\Handler;

use Laminas\\Diactoros\\Response\\JsonResponse;
use Psr\\Http\\Message\\ResponseInterface;
use Psr\\Http\\Message\\ServerRequestInterface;
use Psr\\Http\\Server\\RequestHandlerInterface;

use function time;

class PingHandler implements RequestHandlerInterface
{
    public function handle(ServerRequestInterface $request): ResponseInterface
    {
        return new JsonResponse(['ack' => time()]);
    }
}
"""

FILES["pipeline"] = """\
<?php

declare(strict_types=1);

use Laminas\\Stratigility\\Middleware\\ErrorHandler;
use Mezzio\\Application;
use Mezzio\\Handler\\NotFoundHandler;
use Mezzio\\Helper\\ServerUrlMiddleware;
use Mezzio\\MiddlewareFactory;
use Mezzio\\Router\\Middleware\\DispatchMiddleware;
use Mezzio\\Router\\Middleware\\RouteMiddleware;
use Psr\\Container\\ContainerInterface;

return function (Application $app, MiddlewareFactory $factory, ContainerInterface $container): void {
    $app->pipe(ErrorHandler::class);
    $app->pipe(ServerUrlMiddleware::class);
    $app->pipe(RouteMiddleware::class);
    $app->pipe(DispatchMiddleware::class);
    $app->pipe(NotFoundHandler::class);
};
"""

FILES["routes"] = """\
<?php

declare(strict_types=1);

use Mezzio\\Application;
use Mezzio\\MiddlewareFactory;
use Psr\\Container\\ContainerInterface;

return static function (Application $app, MiddlewareFactory $factory, ContainerInterface $container): void {
    $app->get('/', App\\Handler\\HomePageHandler::class, 'home');
    $app->get('/api/ping', App\\Handler\\PingHandler::class, 'api.ping');
};
"""

FILES["mezzio-global"] = """\
<?php

declare(strict_types=1);

use Laminas\\ConfigAggregator\\ConfigAggregator;

return [
    // Toggle the configuration cache. Set this to boolean false, or remove the
    // directive, to disable configuration caching.
    ConfigAggregator::ENABLE_CACHE => true,

    // Enable debugging; typically used to provide debugging information within templates.
    'debug'  => false,
    'mezzio' => [
        'error_handler' => [
            'template_404'   => 'error::404',
            'template_error' => 'error::error',
        ],
    ],
];
"""

FILES["readme"] = """\
# Mezzio Skeleton

Generated by skelkit. Answer the installer questions, then run
`composer install` to fetch the selected packages.
"""

_CONTAINER_TEMPLATE = """\
<?php

declare(strict_types=1);

%%uses%%
$config = require __DIR__ . '/%%aggregator_include%%';

/** @return \\%%target%% */
%%body%%
"""


def _container(uses: str, target: str, body: str) -> str:
    return (
        _CONTAINER_TEMPLATE.replace("%%uses%%", uses)
        .replace("%%target%%", target)
        .replace("%%body%%", body)
    )


FILES["container-aura-di"] = _container(
    "use Laminas\\AuraDi\\Config\\Config;\nuse Laminas\\AuraDi\\Config\\ContainerFactory;\n",
    "Aura\\Di\\Container",
    "$factory = new ContainerFactory();\n\nreturn $factory(new Config($config));",
)
FILES["container-pimple"] = _container(
    "use Laminas\\Pimple\\Config\\Config;\nuse Laminas\\Pimple\\Config\\ContainerFactory;\n",
    "Pimple\\Psr11\\Container",
    "$factory = new ContainerFactory();\n\nreturn $factory(new Config($config));",
)
FILES["container-laminas-servicemanager"] = _container(
    "use Laminas\\ServiceManager\\ServiceManager;\n",
    "Laminas\\ServiceManager\\ServiceManager",
    "$dependencies                       = $config['dependencies'];\n"
    "$dependencies['services']['config'] = $config;\n\n"
    "return new ServiceManager($dependencies);",
)
FILES["container-auryn"] = _container(
    "use Auryn\\Injector;\nuse Northwoods\\Container\\Config\\ContainerConfig;\n"
    "use Northwoods\\Container\\InjectorContainer;\n",
    "Northwoods\\Container\\InjectorContainer",
    "$injector = new Injector();\n(new ContainerConfig($config))->apply($injector);\n\n"
    "return new InjectorContainer($injector);",
)
FILES["container-sf-di"] = _container(
    "use JSoumelidis\\SymfonyDI\\Config\\Config;\nuse JSoumelidis\\SymfonyDI\\Config\\ContainerFactory;\n",
    "Symfony\\Component\\DependencyInjection\\ContainerBuilder",
    "$factory = new ContainerFactory();\n\nreturn $factory(new Config($config));",
)
FILES["container-php-di"] = _container(
    "use Elie\\PHPDI\\Config\\Config;\nuse Elie\\PHPDI\\Config\\ContainerFactory;\n",
    "DI\\Container",
    "$factory = new ContainerFactory();\n\nreturn $factory(new Config($config));",
)
FILES["container-chubbyphp"] = _container(
    "use Chubbyphp\\Container\\Container;\nuse Chubbyphp\\Laminas\\Config\\Config;\n"
    "use Chubbyphp\\Laminas\\Config\\ContainerFactory;\n",
    "Chubbyphp\\Container\\Container",
    "$factory = new ContainerFactory();\n\nreturn $factory(new Config($config));",
)

FILES["plates-home-page"] = """\
<?php $this->layout('layout::default', ['title' => 'Home']) ?>

<div class="mb-4 p-3 bg-light rounded-3">
    <h1>Welcome to <span class="mezzio">mezzio</span></h1>
    <p>Congratulations! You have successfully installed the mezzio skeleton application.</p>
</div>

<h2>Get started with <?= $this->e($containerName) ?></h2>
<a href="<?= $this->e($containerDocs) ?>">Learn more</a>

<h2>Routing with <?= $this->e($routerName) ?></h2>
<a href="<?= $this->e($routerDocs) ?>">Learn more</a>

<h2>Templating with <?= $this->e($templateName) ?></h2>
<a href="<?= $this->e($templateDocs) ?>">Learn more</a>
"""
FILES["plates-404"] = """\
<?php $this->layout('layout::default', ['title' => '404 Not Found']) ?>

<h2>Oops!</h2>
<h1>This is awkward.</h1>
<p>We encountered a 404 Not Found error.</p>
"""
FILES["plates-layout"] = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title><?= $this->e($title) ?> - mezzio</title>
</head>
<body>
<div class="container">
    <?= $this->section('content') ?>
</div>
</body>
</html>
"""

FILES["twig-home-page"] = """\
{% extends '@layout/default.html.twig' %}

{% block title %}Home{% endblock %}

{% block content %}
    <div class="mb-4 p-3 bg-light rounded-3">
        <h1>Welcome to <span class="mezzio">mezzio</span></h1>
        <p>Congratulations! You have successfully installed the mezzio skeleton application.</p>
    </div>

    <h2>Get started with {{ containerName }}</h2>
    <a href="{{ containerDocs }}">Learn more</a>

    <h2>Routing with {{ routerName }}</h2>
    <a href="{{ routerDocs }}">Learn more</a>

    <h2>Templating with {{ templateName }}</h2>
    <a href="{{ templateDocs }}">Learn more</a>
{% endblock %}
"""
FILES["twig-404"] = """\
{% extends '@layout/default.html.twig' %}

{% block title %}404 Not Found{% endblock %}

{% block content %}
    <h2>Oops!</h2>
    <h1>This is awkward.</h1>
    <p>We encountered a 404 Not Found error.</p>
{% endblock %}
"""
FILES["twig-layout"] = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>{% block title %}{% endblock %} - mezzio</title>
</head>
<body>
<div class="container">
    {% block content %}{% endblock %}
</div>
</body>
</html>
"""

FILES["laminas-view-home-page"] = """\
<?php $this->headTitle('Home'); ?>

<div class="mb-4 p-3 bg-light rounded-3">
    <h1>Welcome to <span class="mezzio">mezzio</span></h1>
    <p>Congratulations! You have successfully installed the mezzio skeleton application.</p>
</div>

<h2>Get started with <?= $this->escapeHtml($this->containerName) ?></h2>
<a href="<?= $this->escapeHtmlAttr($this->containerDocs) ?>">Learn more</a>

<h2>Routing with <?= $this->escapeHtml($this->routerName) ?></h2>
<a href="<?= $this->escapeHtmlAttr($this->routerDocs) ?>">Learn more</a>

<h2>Templating with <?= $this->escapeHtml($this->templateName) ?></h2>
<a href="<?= $this->escapeHtmlAttr($this->templateDocs) ?>">Learn more</a>
"""
FILES["laminas-view-404"] = """\
<?php $this->headTitle('404 Not Found'); ?>

<h2>Oops!</h2>
<h1>This is awkward.</h1>
<p>We encountered a 404 Not Found error.</p>
"""
FILES["laminas-view-layout"] = """\
<?= $this->doctype() ?>
<html lang="en">
<head>
    <meta charset="utf-8">
    <?= $this->headTitle('mezzio')->setSeparator(' - ')->setAutoEscape(false) ?>
</head>
<body>
<div class="container">
    <?= $this->content ?>
</div>
</body>
</html>
"""

FILES["whoops-development"] = """\
<?php

declare(strict_types=1);

use Mezzio\\Container;
use Mezzio\\Middleware\\ErrorResponseGenerator;

return [
    'dependencies' => [
        'factories' => [
            ErrorResponseGenerator::class       => Container\\WhoopsErrorResponseGeneratorFactory::class,
            'Mezzio\\Whoops'                     => Container\\WhoopsFactory::class,
            'Mezzio\\WhoopsPageHandler'          => Container\\WhoopsPageHandlerFactory::class,
        ],
    ],
    'whoops'       => [
        'json_exceptions' => [
            'display'    => true,
            'show_trace' => true,
            'ajax_only'  => true,
        ],
    ],
];
"""

# Files every new project starts with: destination -> body key.
BASE_FILES: dict[str, str] = {
    "config/pipeline.php": "pipeline",
    "config/autoload/mezzio.global.php": "mezzio-global",
    "README.md": "readme",
}


def render(key: str, context: Optional[dict[str, str]] = None) -> str:
    """Return the body registered under *key* with placeholders substituted."""
    try:
        body = FILES[key]
    except KeyError:
        raise KeyError(f"Unknown skeleton file: {key}") from None
    values = context or {}
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group("name"), m.group(0)), body)


def _php_quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def class_map(options: Iterable, indent: str = "        ") -> str:
    """PHP array entries mapping each option's target class to ``[name, docs]``."""
    lines = []
    for option in options:
        if not option.target:
            continue
        ref = option.target.lstrip("\\")
        lines.append(f"{indent}\\{ref}::class => [{_php_quote(option.name)}, {_php_quote(option.docs)}],")
    return "\n".join(lines)


def create_project(project_root: Path, *, catalog_version: int = 1, overwrite: bool = False) -> list[Path]:
    """Write the base skeleton into *project_root*.

    Raises FileExistsError when the directory already holds a composer.json
    and *overwrite* is not set.
    """
    project_root = Path(project_root)
    manifest_path = project_root / "composer.json"
    if manifest_path.exists() and not overwrite:
        raise FileExistsError(f"Project already exists: {manifest_path}")

    project_root.mkdir(parents=True, exist_ok=True)
    written = []

    manifest = json.dumps(base_manifest(catalog_version), indent=4, ensure_ascii=False) + "\n"
    atomic_write(manifest_path, manifest)
    written.append(manifest_path)

    for dest, key in BASE_FILES.items():
        path = project_root / dest
        atomic_write(path, render(key))
        written.append(path)

    return written
