"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import click
import toml
import yaml
from loguru import logger

from moddepupdater import __version__
from moddepupdater.backend import HttpBackend
from moddepupdater.exceptions import ConfigParseError, ModDepError
from moddepupdater.i18n import SUPPORTED_LANGUAGES, Translator
from moddepupdater.logger import SessionLog, setup_logger
from moddepupdater.models import AppConfig, Mode, PersistedFormState
from moddepupdater.storage import JsonStateStore
from moddepupdater.ui import FormController, TerminalModalView

T = TypeVar("T")


def load_config(config_path: str) -> dict:
    """加载配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise click.ClickException(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            return toml.load(config_path)
        elif suffix == ".json":
            return json.loads(path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (toml.TomlDecodeError, yaml.YAMLError, ValueError) as e:
        raise ConfigParseError(
            f"配置文件解析失败: {e}", context={"path": config_path}
        )
    raise click.ClickException(f"不支持的配置文件格式: {suffix}")


def apply_fields(form: FormController, fields: Dict[str, Any]) -> None:
    """把命令行给出的字段写入表单（未给出的保持持久化的值）"""
    if fields.get("gradle") is not None:
        form.set_gradle_path(fields["gradle"])
    if fields.get("source") is not None:
        form.set_source(fields["source"])
    if fields.get("api_key") is not None:
        form.set_api_key(fields["api_key"])
    if fields.get("project") is not None:
        form.set_project_id(fields["project"])
    if fields.get("lang") is not None:
        form.set_language(fields["lang"])
    if fields.get("no_cache"):
        form.set_cache_versions(False)


async def run_form(
    config: AppConfig,
    fields: Dict[str, Any],
    action: Callable[[FormController], Awaitable[T]],
) -> T:
    """创建表单并执行操作，结束时保存会话日志"""
    session_log = SessionLog(config.logging.log_dir)
    session_log.attach()
    try:
        async with HttpBackend(
            config.backend.base_url, config.backend.timeout
        ) as backend:
            translator = Translator(config.language)
            form = FormController(
                backend,
                JsonStateStore(config.storage.state_file),
                translator,
                TerminalModalView(translator),
                defaults=PersistedFormState(lang=config.language),
            )
            apply_fields(form, fields)
            return await action(form)
    finally:
        path = await session_log.flush()
        session_log.detach()
        if path:
            logger.debug(f"会话日志已保存: {path}")


def _fail(form: FormController, fallback: str) -> None:
    err = form.last_error
    raise click.ClickException(err.message if err is not None else fallback)


async def interact(form: FormController) -> Optional[str]:
    """在终端中操作版本选择弹窗，直到应用成功或取消"""
    modal = form.modal
    result: Optional[str] = None
    while modal.is_open:
        batch = modal.mode is Mode.BATCH
        # 提示与可用操作跟随弹窗当前可见的应用按钮
        if modal.apply_all_control.visible:
            hint = form.t(
                "prompt_batch", "<n> pick version, t <n> switch mod, A apply all, q cancel"
            )
        else:
            hint = form.t("prompt_single", "<n> pick version, a apply, q cancel")
        answer = click.prompt(hint).strip()

        if answer in ("q", "quit"):
            form.cancel()
            logger.info(form.t("log_cancelled", "Cancelled."))
        elif answer == "a" and modal.apply_control.visible:
            result = await form.apply()
        elif answer == "A" and modal.apply_all_control.visible:
            result = await form.apply_all()
        elif batch and answer.startswith("t ") and answer[2:].strip().isdigit():
            idx = int(answer[2:].strip())
            session = modal.session
            if session is not None and 1 <= idx <= len(session.items):
                await form.activate(session.items[idx - 1].key)
            else:
                click.echo(form.t("prompt_invalid", "Invalid input: {input}", {"input": answer}))
        elif answer.isdigit() and 1 <= int(answer) <= len(modal.choices):
            form.select(modal.choices[int(answer) - 1].id)
        else:
            click.echo(form.t("prompt_invalid", "Invalid input: {input}", {"input": answer}))
    return result


def form_options(func):
    """表单字段选项"""
    options = [
        click.option("--gradle", help="build.gradle 路径"),
        click.option(
            "--source",
            type=click.Choice(["modrinth", "curseforge"], case_sensitive=False),
            help="模组平台",
        ),
        click.option("--project", help="项目 slug / ID"),
        click.option("--api-key", help="CurseForge API Key"),
        click.option("--lang", type=click.Choice(SUPPORTED_LANGUAGES), help="界面语言"),
        click.option("--no-cache", is_flag=True, help="不使用后端版本缓存"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=None,
    help="配置文件 (toml/json/yaml)",
)
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], debug: bool):
    """ModDepUpdater - build.gradle 模组依赖版本更新工具"""
    try:
        config = AppConfig.from_dict(load_config(config_path) if config_path else {})
    except ModDepError as e:
        raise click.ClickException(str(e))

    setup_logger(level="DEBUG" if debug else config.logging.level, enqueue=False)
    if debug:
        logger.debug("调试模式已启用")
    ctx.obj = config


@main.command()
@form_options
@click.pass_obj
def options(config: AppConfig, **fields):
    """获取项目可用的版本和加载器"""

    async def action(form: FormController):
        form.set_mode(Mode.SINGLE)
        graph = await form.fetch_options()
        if graph is None:
            _fail(form, "获取项目选项失败")
        click.echo(form.t("label_versions", "Versions") + ": " + ", ".join(graph.versions))
        click.echo(form.t("label_loaders", "Loaders") + ": " + ", ".join(graph.loaders))
        for version in graph.versions:
            click.echo(f"  {version}: {', '.join(graph.loaders_for(version))}")

    asyncio.run(run_form(config, fields, action))


@main.command()
@form_options
@click.option("--version", "mc_version", help="Minecraft 版本")
@click.option("--loader", help="模组加载器")
@click.option("--batch", is_flag=True, help="批量模式")
@click.option(
    "--items",
    "items_file",
    type=click.Path(exists=True, dir_okay=False),
    help="批量项目列表文件（每行一个）",
)
@click.option("-i", "--item", "items", multiple=True, help="批量项目（可多次使用）")
@click.option("--latest", is_flag=True, help="直接使用最新匹配版本，不进行选择")
@click.pass_obj
def update(
    config: AppConfig,
    mc_version: Optional[str],
    loader: Optional[str],
    batch: bool,
    items_file: Optional[str],
    items: tuple,
    latest: bool,
    **fields,
):
    """更新 build.gradle 中的模组依赖版本"""

    async def action(form: FormController):
        form.set_mode(Mode.BATCH if batch else Mode.SINGLE)
        if batch:
            lines = list(items)
            if items_file:
                lines.append(Path(items_file).read_text(encoding="utf-8"))
            form.batch_items = "\n".join(lines)
            form.set_batch_target(
                mc_version or form.state.mc_version, loader or form.state.loader
            )
        else:
            if await form.fetch_options() is None:
                _fail(form, "获取项目选项失败")
            if mc_version and not form.select_version(mc_version):
                _fail(form, f"未知版本: {mc_version}")
            if loader and not form.select_loader(loader):
                _fail(form, f"未知加载器: {loader}")

        if latest:
            if await form.quick_update() is None:
                _fail(form, "更新失败")
            return

        if not await form.start_update():
            _fail(form, "无法打开版本选择")
        if await interact(form) is None and form.last_error is not None:
            _fail(form, "更新失败")

    asyncio.run(run_form(config, fields, action))


@main.command("clear-cache")
@click.pass_obj
def clear_cache(config: AppConfig):
    """清除后端缓存"""

    async def action(form: FormController):
        if not await form.clear_cache():
            _fail(form, "清除缓存失败")

    asyncio.run(run_form(config, {}, action))


@main.command("refresh-cache")
@click.pass_obj
def refresh_cache(config: AppConfig):
    """刷新 Mojang 版本清单缓存"""

    async def action(form: FormController):
        if not await form.refresh_cache():
            _fail(form, "刷新缓存失败")

    asyncio.run(run_form(config, {}, action))


if __name__ == "__main__":
    main()
