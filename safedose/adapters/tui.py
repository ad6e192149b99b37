# safedose/adapters/tui.py
"""
TUI (Text User Interface) do SafeDose usando Rich.

Interface interativa baseada em menus:
- Formulário de cálculo de dosagem
- Visualização do histórico
- Exclusão de itens do histórico (com confirmação)
- Limites de segurança
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, Confirm
from rich.align import Align

from safedose.config import DB_PATH, DEFAULTS
from safedose.adapters.parsers import parse_numero, validar_formulario
from safedose.adapters.cli import painel_resultado, tabela_historico, tabela_limites
from safedose.domain.policies import LIMITES_SEGURANCA
from safedose.usecases.sistema import SistemaSafeDose


UNIDADES_MASSA = ["g", "mg", "mcg"]
UNIDADES_VOLUME = ["ml", "l"]
FORMAS = ["comprimido", "capsula", "liquido", "injeção", "solução"]


class SafeDoseTUI:
    """Text User Interface para o cálculo de dosagem."""

    def __init__(self, sistema: SistemaSafeDose, console: Optional[Console] = None):
        self.console = console or Console()
        self.sistema = sistema

    def run(self) -> None:
        """Inicia a interface principal."""
        self.show_banner()

        while True:
            try:
                choice = self.show_main_menu()
                if choice == "1":
                    self.calcular()
                elif choice == "2":
                    self.mostrar_historico()
                elif choice == "3":
                    self.remover_item()
                elif choice == "4":
                    self.console.print(tabela_limites())
                elif choice == "0":
                    self.console.print("\n[green]Saindo do sistema...[/green]")
                    break
            except KeyboardInterrupt:
                self.console.print("\n[red]Saindo...[/red]")
                break

    def show_banner(self) -> None:
        banner = Panel.fit(
            "[bold blue]SAFEDOSE[/bold blue]\n"
            "[cyan]Calculadora de Dosagem[/cyan]",
            border_style="blue"
        )
        self.console.print(Align.center(banner))

    def show_main_menu(self) -> str:
        """Exibe menu principal e retorna escolha do usuário."""
        menu = Panel(
            "[bold]MENU PRINCIPAL[/bold]\n\n"
            "[yellow]1.[/yellow] Calcular Dosagem\n"
            "[yellow]2.[/yellow] Ver Histórico\n"
            "[yellow]3.[/yellow] Excluir Item do Histórico\n"
            "[yellow]4.[/yellow] Limites de Segurança\n"
            "[yellow]0.[/yellow] Sair\n",
            title="Opções",
            border_style="green"
        )
        self.console.print(menu)
        return Prompt.ask("Escolha uma opção", choices=["0", "1", "2", "3", "4"])

    def calcular(self) -> None:
        """Coleta o formulário, calcula e registra no histórico."""
        medicamento = Prompt.ask(
            "Medicamento", choices=sorted(LIMITES_SEGURANCA), show_choices=True
        )
        dosagem = parse_numero(Prompt.ask("Dosagem prescrita"))
        unidade = Prompt.ask("Unidade", choices=UNIDADES_MASSA, default=DEFAULTS.unidade_prescrita)
        massa = parse_numero(Prompt.ask("Massa disponível"))
        unidade_massa = Prompt.ask("Unidade da massa", choices=UNIDADES_MASSA, default=DEFAULTS.unidade_massa)
        volume = parse_numero(Prompt.ask("Volume disponível"))
        unidade_volume = Prompt.ask("Unidade do volume", choices=UNIDADES_VOLUME, default=DEFAULTS.unidade_volume)
        forma = Prompt.ask("Forma farmacêutica", choices=FORMAS)

        erros = validar_formulario(medicamento, dosagem, massa, volume, forma)
        if erros:
            for msg in erros.values():
                self.console.print(f"[red]{msg}[/red]")
            return

        resultado, alerta = self.sistema.calcular(
            medicamento, dosagem, unidade, massa, unidade_massa, volume, unidade_volume, forma
        )
        self.console.print(painel_resultado(resultado, alerta))

    def mostrar_historico(self) -> None:
        registros = self.sistema.obter_historico()
        if not registros:
            self.console.print("[yellow]Nenhum cálculo no histórico.[/yellow]")
            return
        self.console.print(tabela_historico(registros))

    def remover_item(self) -> None:
        """Exclui um item do histórico após confirmação."""
        registro_id = parse_numero(Prompt.ask("ID do item"))
        if registro_id is None:
            self.console.print("[red]ID inválido.[/red]")
            return
        if not Confirm.ask(f"Excluir o item {int(registro_id)} do histórico?"):
            self.console.print("[dim]Operação cancelada.[/dim]")
            return
        if self.sistema.remover_historico(int(registro_id)):
            self.console.print("[green]✓ Item removido.[/green]")
        else:
            self.console.print(f"[yellow]Nenhum item com ID {int(registro_id)}.[/yellow]")


def main_tui(db_path: str = DB_PATH) -> None:
    """Ponto de entrada da TUI."""
    SafeDoseTUI(SistemaSafeDose(db_path)).run()
