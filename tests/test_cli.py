import json
from pathlib import Path

from typer.testing import CliRunner

from safedose.adapters.cli import app
from safedose.config import HISTORICO_KEY
from safedose.infra.repositories import StorageRepo

runner = CliRunner()

ARGS_CALCULO = [
    "calcular",
    "--medicamento", "dipirona",
    "--dose", "500",
    "--massa", "1000",
    "--volume", "10",
    "--forma", "comprimido",
]


def test_cli_migrate(tmp_path: Path):
    db_path = tmp_path / "safedose_test.sqlite"
    result = runner.invoke(app, ["migrate", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert db_path.exists()


def test_cli_calcular_json_e_historico(tmp_path: Path):
    db_path = str(tmp_path / "safedose_test.sqlite")
    result = runner.invoke(app, ARGS_CALCULO + ["--json", "--db", db_path])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["sucesso"] is True
    assert data["resultado"] == "Administrar 5.00 comprimido"
    assert data["alerta"]["tipo"] == "success"
    assert isinstance(data["id"], int)

    result = runner.invoke(app, ["historico", "listar", "--json", "--db", db_path])
    assert result.exit_code == 0, result.output
    historico = json.loads(result.stdout)
    assert len(historico) == 1
    assert historico[0]["id"] == data["id"]
    assert historico[0]["medicamento"] == "dipirona"


def test_cli_calcular_virgula_decimal_e_alerta(tmp_path: Path):
    db_path = str(tmp_path / "safedose_test.sqlite")
    result = runner.invoke(
        app,
        [
            "calcular", "-m", "dipirona", "-d", "4,5", "--unidade", "g",
            "--massa", "1", "--unidade-massa", "g", "--volume", "2", "-f", "liquido",
            "--json", "--db", db_path,
        ],
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["prescricao_mg"] == 4500
    assert data["resultado"] == "Administrar 9.00 mL de dipirona"
    assert data["alerta"]["tipo"] == "warning"


def test_cli_calcular_sem_historico(tmp_path: Path):
    db_path = str(tmp_path / "safedose_test.sqlite")
    result = runner.invoke(app, ARGS_CALCULO + ["--sem-historico", "--db", db_path])
    assert result.exit_code == 0, result.output
    assert "5.00" in result.output

    result = runner.invoke(app, ["historico", "listar", "--json", "--db", db_path])
    assert json.loads(result.stdout) == []


def test_cli_calcular_formulario_invalido(tmp_path: Path):
    db_path = str(tmp_path / "safedose_test.sqlite")
    result = runner.invoke(
        app, ["calcular", "--dose", "abc", "--massa", "0", "--volume", "10", "--json", "--db", db_path]
    )
    assert result.exit_code == 1
    erros = json.loads(result.stdout)["erros"]
    assert set(erros) == {"medicamento", "dosagem", "concentracao", "forma"}


def test_cli_historico_remover(tmp_path: Path):
    db_path = str(tmp_path / "safedose_test.sqlite")
    result = runner.invoke(app, ARGS_CALCULO + ["--json", "--db", db_path])
    registro_id = json.loads(result.stdout)["id"]

    # confirmação negada
    result = runner.invoke(app, ["historico", "remover", str(registro_id), "--db", db_path], input="n\n")
    assert result.exit_code == 0
    assert "cancelada" in result.output

    result = runner.invoke(app, ["historico", "remover", str(registro_id), "--db", db_path], input="y\n")
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["historico", "listar", "--json", "--db", db_path])
    assert json.loads(result.stdout) == []

    result = runner.invoke(app, ["historico", "remover", str(registro_id), "--yes", "--db", db_path])
    assert result.exit_code == 1


def test_cli_historico_corrompido(tmp_path: Path):
    db_path = str(tmp_path / "safedose_test.sqlite")
    runner.invoke(app, ["migrate", "--db", db_path])
    StorageRepo(db_path).set_item(HISTORICO_KEY, "{quebrado")
    result = runner.invoke(app, ["historico", "listar", "--db", db_path])
    assert result.exit_code == 1


def test_cli_limites():
    result = runner.invoke(app, ["limites"])
    assert result.exit_code == 0, result.output
    assert "dipirona" in result.output
    assert "morfina" in result.output
