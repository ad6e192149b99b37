# safedose/adapters/cli.py
"""
CLI do SafeDose (Typer).

Comandos principais:
- migrate                   -> aplica migrações do armazenamento
- calcular                  -> calcula a dose, verifica limites e registra no histórico
- historico listar          -> lista o histórico (mais recente primeiro)
- historico remover <id>    -> remove um item do histórico (com confirmação)
- limites                   -> mostra os limites de segurança cadastrados
- tui                       -> interface interativa por menus
"""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box
from rich.markup import escape

from safedose.config import DB_PATH, DEFAULTS
from safedose.adapters.parsers import parse_numero, validar_formulario
from safedose.domain.policies import LIMITES_SEGURANCA
from safedose.infra.migrations import apply_migrations
from safedose.infra.repositories import HistoricoCorrompidoError, registros_como_dicts
from safedose.usecases.sistema import SistemaSafeDose


app = typer.Typer(help="SafeDose — Calculadora de dosagem")
console = Console()

# tipo do alerta -> cor no Rich
CORES_ALERTA = {"warning": "yellow", "success": "green", "info": "cyan", "error": "red"}


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2))


def _abrir_sistema(db_path: str) -> SistemaSafeDose:
    sistema = SistemaSafeDose(db_path)
    try:
        sistema.obter_historico()
    except HistoricoCorrompidoError as e:
        console.print(f"[bold red]Histórico corrompido:[/] {escape(str(e))}")
        raise typer.Exit(code=1)
    return sistema


def tabela_historico(registros, title: str = "Histórico de Cálculos") -> Table:
    """Monta a tabela Rich do histórico (usada pela CLI e pela TUI)."""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Medicamento")
    table.add_column("Dosagem Prescrita", justify="right")
    table.add_column("Concentração Disponível")
    table.add_column("Resultado")
    table.add_column("Alerta")
    for r in registros:
        # campos vêm do usuário: sem interpretação de markup
        table.add_row(*(escape(c) for c in (
            str(r.id),
            str(r.medicamento),
            f"{r.prescricao_valor} {r.prescricao_unidade}",
            f"{r.disponivel_massa} {r.disponivel_massa_unidade} / "
            f"{r.disponivel_volume} {r.disponivel_volume_unidade} ({r.forma})",
            str(r.resultado),
            str(r.alerta or ""),
        )))
    return table


def tabela_limites() -> Table:
    table = Table(title="Limites de Segurança", box=box.ROUNDED)
    table.add_column("Medicamento")
    table.add_column("Dose mínima", justify="right")
    table.add_column("Dose máxima", justify="right")
    table.add_column("Unidade")
    for nome, limite in LIMITES_SEGURANCA.items():
        table.add_row(
            nome,
            "-" if limite.min_dose is None else f"{limite.min_dose:g}",
            "-" if limite.max_dose is None else f"{limite.max_dose:g}",
            limite.unidade,
        )
    return table


def painel_resultado(resultado, alerta) -> Panel:
    """Painel com a instrução (ou erro) e o alerta de segurança."""
    if not resultado.sucesso:
        return Panel(f"[bold red]{escape(resultado.texto)}[/]", title="Resultado", border_style="red")
    cor = CORES_ALERTA.get(alerta.tipo, "white")
    corpo = f"[bold green]{escape(resultado.texto)}[/]\n\n[{cor}]{escape(alerta.mensagem)}[/]"
    return Panel(corpo, title="Resultado", border_style=cor)


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações do armazenamento."""
    apply_migrations(db_path)
    typer.echo(f">> Migrações aplicadas em: {db_path}")


@app.command("limites")
def cmd_limites():
    """Mostra os limites de segurança cadastrados."""
    console.print(tabela_limites())


# -----------------------
# cálculo
# -----------------------

@app.command("calcular")
def cmd_calcular(
    medicamento: str = typer.Option("", "--medicamento", "-m", help="Ex.: dipirona"),
    dose: str = typer.Option("", "--dose", "-d", help="Dosagem prescrita (aceita vírgula)"),
    unidade: str = typer.Option(DEFAULTS.unidade_prescrita, "--unidade", help="g | mg | mcg"),
    massa: str = typer.Option("", "--massa", help="Massa disponível (aceita vírgula)"),
    unidade_massa: str = typer.Option(DEFAULTS.unidade_massa, "--unidade-massa", help="g | mg | mcg"),
    volume: str = typer.Option("", "--volume", help="Volume disponível (aceita vírgula)"),
    unidade_volume: str = typer.Option(DEFAULTS.unidade_volume, "--unidade-volume", help="ml | l"),
    forma: str = typer.Option("", "--forma", "-f", help="comprimido | capsula | liquido | injeção | solução"),
    sem_historico: bool = typer.Option(False, "--sem-historico", help="Não registra no histórico"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Calcula a quantidade a administrar e verifica os limites de segurança."""
    prescricao_valor = parse_numero(dose)
    disponivel_massa = parse_numero(massa)
    disponivel_volume = parse_numero(volume)

    erros = validar_formulario(medicamento, prescricao_valor, disponivel_massa, disponivel_volume, forma)
    if erros:
        if as_json:
            _print_json({"erros": erros})
        else:
            for msg in erros.values():
                console.print(f"[red]{msg}[/red]")
        raise typer.Exit(code=1)

    sistema = _abrir_sistema(db_path)
    resultado, alerta = sistema.calcular(
        medicamento,
        prescricao_valor,
        unidade,
        disponivel_massa,
        unidade_massa,
        disponivel_volume,
        unidade_volume,
        forma,
        registrar=not sem_historico,
    )

    if as_json:
        out = {
            "resultado": resultado.texto,
            "sucesso": resultado.sucesso,
            "quantidade": resultado.quantidade,
            "prescricao_mg": resultado.prescricao_mg,
            "alerta": None if alerta is None else {"mensagem": alerta.mensagem, "tipo": alerta.tipo},
        }
        if resultado.sucesso and not sem_historico:
            out["id"] = sistema.obter_historico()[0].id
        _print_json(out)
    else:
        console.print(painel_resultado(resultado, alerta))

    if not resultado.sucesso:
        raise typer.Exit(code=1)


# -----------------------
# histórico
# -----------------------

historico_app = typer.Typer(help="Gerenciar o histórico de cálculos.")
app.add_typer(historico_app, name="historico")


@historico_app.command("listar")
def cmd_historico_listar(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista o histórico, do mais recente para o mais antigo."""
    registros = _abrir_sistema(db_path).obter_historico()
    if as_json:
        _print_json(registros_como_dicts(registros))
        return
    if not registros:
        console.print(Panel("Nenhum cálculo no histórico.", title="Histórico", border_style="yellow"))
        return
    console.print(tabela_historico(registros))


@historico_app.command("remover")
def cmd_historico_remover(
    registro_id: int = typer.Argument(..., help="ID do item do histórico"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Não pedir confirmação"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Remove um item do histórico."""
    sistema = _abrir_sistema(db_path)
    if not yes and not typer.confirm(f"Excluir o item {registro_id} do histórico?"):
        typer.echo("Operação cancelada.")
        raise typer.Exit(code=0)
    removidos = sistema.remover_historico(registro_id)
    if not removidos:
        typer.echo(f"Nenhum item com ID {registro_id}.")
        raise typer.Exit(code=1)
    typer.echo(f">> Item {registro_id} removido do histórico.")


# -----------------------
# TUI
# -----------------------

@app.command("tui")
def cmd_tui(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Inicia a interface terminal interativa (TUI)."""
    from safedose.adapters.tui import main_tui
    try:
        main_tui(db_path)
    except HistoricoCorrompidoError as e:
        console.print(f"[bold red]Histórico corrompido:[/] {escape(str(e))}")
        raise typer.Exit(code=1)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
