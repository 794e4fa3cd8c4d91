"""Per-system probe profiles: endpoints, strategy, locators, classifiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from ..browser.locators import Locator, locators
from .indicators import IndicatorSet
from .taxonomy import SOURCE_TAXONOMY, RedirectRule, ResponseTaxonomy

Strategy = Literal["direct", "browser"]


@dataclass(frozen=True)
class SystemProfile:
    system_id: str
    name: str
    reachability_urls: tuple[str, ...]
    strategy: Strategy
    login_url: str
    # direct strategy
    login_endpoint: str | None = None
    username_field: str = "email"
    password_field: str = "password"
    extra_form: dict[str, str] = field(default_factory=dict)
    redirect_rule: RedirectRule = field(default_factory=RedirectRule)
    taxonomy: ResponseTaxonomy | None = None
    # browser strategy
    username_locators: tuple[Locator, ...] = ()
    password_locators: tuple[Locator, ...] = ()
    submit_locators: tuple[Locator, ...] = ()
    indicators: IndicatorSet = field(default_factory=IndicatorSet)
    settle_seconds: float | None = None
    # listing pages used by the default scraper / publisher
    listing_url_template: str | None = None
    publish_url: str | None = None


SOURCE = SystemProfile(
    system_id="source",
    name="UNIVEN",
    reachability_urls=(
        "https://univenweb.com.br",
        "https://www.univenweb.com.br",
        "https://univenweb.com.br/login",
    ),
    strategy="direct",
    login_url="https://www.univenweb.com.br/",
    login_endpoint="https://www.univenweb.com.br/view/login/verifica_login.php",
    username_field="email",
    password_field="senha",
    extra_form={"lembrar": "0"},
    redirect_rule=RedirectRule(keywords=("dashboard", "home", "principal", "sistema", "menu")),
    taxonomy=SOURCE_TAXONOMY,
    username_locators=locators('input[name="email"]', 'input[type="email"]', "#email"),
    password_locators=locators('input[name="senha"]', 'input[type="password"]', "#senha"),
    submit_locators=locators('button[type="submit"]', 'input[type="submit"]'),
    indicators=IndicatorSet(
        success_url_patterns=("dashboard", "principal", "sistema"),
        success_phrases=(
            "sair",
            "logout",
            "meus imóveis",
            "área do usuário",
            "dashboard",
            "menu-usuario",
            "bem-vindo",
            "olá,",
        ),
        failure_phrases=("senha incorreta", "dados incorretos", "usuário não encontrado"),
    ),
    listing_url_template="https://www.univenweb.com.br/imovel/{code}",
)

TARGET = SystemProfile(
    system_id="target",
    name="Canal Pro",
    reachability_urls=("https://canalpro.grupozap.com/",),
    strategy="browser",
    login_url="https://canalpro.grupozap.com/login",
    username_locators=(
        Locator('input[name="email"]', "email input"),
        Locator('input[name="username"]', "username input"),
        Locator('input[name="user"]', "user input"),
        Locator('input[type="email"]', "email-typed input"),
        Locator('input[type="text"]', "first text input"),
        Locator("#email"),
        Locator("#username"),
        Locator("#user"),
        Locator('.form-control[type="email"]'),
        Locator('.form-control[type="text"]'),
        Locator('[placeholder*="email"]'),
        Locator('[placeholder*="e-mail"]'),
        Locator('[placeholder*="usuário"]'),
    ),
    password_locators=(
        Locator('input[name="password"]', "password input"),
        Locator('input[name="senha"]', "senha input"),
        Locator('input[type="password"]', "password-typed input"),
        Locator("#password"),
        Locator("#senha"),
        Locator('.form-control[type="password"]'),
        Locator('[placeholder*="senha"]'),
        Locator('[placeholder*="password"]'),
    ),
    submit_locators=locators(
        'button[type="submit"]',
        'input[type="submit"]',
        "button.btn-primary",
        "button.btn-login",
        ".btn-login",
        "#btnLogin",
        ".submit-btn",
        ".login-btn",
    ),
    indicators=IndicatorSet(
        success_url_patterns=("dashboard", "painel", "admin", "portal", "home", "main"),
        success_phrases=(
            "logout",
            "sair",
            "bem-vindo",
            "dashboard",
            "painel",
            "meus anúncios",
            "olx pro",
            "canal pro",
        ),
        failure_phrases=(
            "email inválido",
            "senha incorreta",
            "credenciais inválidas",
            "erro de login",
            "login inválido",
            "dados incorretos",
            "acesso negado",
            "usuário não encontrado",
        ),
    ),
    settle_seconds=8.0,
    publish_url="https://canalpro.grupozap.com/listings/new",
)

SYSTEMS: dict[str, SystemProfile] = {SOURCE.system_id: SOURCE, TARGET.system_id: TARGET}


def get_profile(system: str, profiles: dict[str, SystemProfile] | None = None) -> SystemProfile:
    profiles = profiles if profiles is not None else SYSTEMS
    try:
        return profiles[system]
    except KeyError:
        raise ValueError(f"Unknown system: {system}") from None
