import json
import sqlite3

import pytest

from safedose.config import HISTORICO_KEY, HISTORICO_LEGACY_KEY
from safedose.infra.migrations import apply_migrations
from safedose.infra.repositories import HistoricoCorrompidoError, HistoricoRepo, StorageRepo
from safedose.usecases.sistema import SistemaSafeDose


RELOGIO = lambda: 1_700_000_000.0  # noqa: E731


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "safedose_test.sqlite")
    apply_migrations(path)
    return path


def _adicionar(repo, medicamento="dipirona", resultado="Administrar 5.00 comprimido"):
    return repo.adicionar(
        medicamento, 500, "mg", 1000, "mg", 10, "ml", "comprimido", resultado,
        "Dosagem dentro dos limites seguros.",
    )


def test_historico_vazio(db_path):
    assert HistoricoRepo(db_path).listar() == ()


def test_adicionar_insere_no_inicio(db_path):
    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    primeiro = _adicionar(repo, "dipirona")
    segundo = _adicionar(repo, "morfina")
    registros = repo.listar()
    assert [r.id for r in registros] == [segundo.id, primeiro.id]
    assert registros[0].medicamento == "morfina"


def test_ids_unicos_no_mesmo_milissegundo(db_path):
    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    ids = [_adicionar(repo).id for _ in range(3)]
    assert ids[0] == 1_700_000_000_000
    assert ids == [1_700_000_000_000, 1_700_000_000_001, 1_700_000_000_002]


def test_remover(db_path):
    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    r1 = _adicionar(repo)
    r2 = _adicionar(repo)
    assert repo.remover(r1.id) == 1
    assert [r.id for r in repo.listar()] == [r2.id]
    assert repo.remover(999) == 0
    assert HistoricoRepo(db_path).listar() == repo.listar()


def test_persistencia_round_trip(db_path):
    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    _adicionar(repo, "dipirona")
    _adicionar(repo, "paracetamol")
    novo = HistoricoRepo(db_path)
    assert novo.load() == repo.listar()


def test_formato_json_persistido(db_path):
    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    _adicionar(repo)
    dados = json.loads(StorageRepo(db_path).get_item(HISTORICO_KEY))
    assert isinstance(dados, list) and len(dados) == 1
    assert dados[0]["id"] == 1_700_000_000_000
    assert dados[0]["prescricaoValor"] == 500
    assert dados[0]["disponivelVolumeUnidade"] == "ml"
    assert dados[0]["alerta"] == "Dosagem dentro dos limites seguros."


def test_listar_nao_expoe_estado_interno(db_path):
    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    _adicionar(repo)
    registros = repo.listar()
    assert isinstance(registros, tuple)
    with pytest.raises(AttributeError):
        registros.append(None)


def test_migracao_da_chave_antiga(db_path):
    legado = [{
        "id": 1600000000000,
        "medicamento": "paracetamol",
        "prescricaoValor": 750,
        "prescricaoUnidade": "mg",
        "disponivelMassa": 200,
        "disponivelMassaUnidade": "mg",
        "disponivelVolume": 1,
        "disponivelVolumeUnidade": "ml",
        "forma": "liquido",
        "resultado": "Administrar 3.75 mL de paracetamol",
        "alerta": "Dosagem dentro dos limites seguros.",
    }]
    storage = StorageRepo(db_path)
    storage.set_item(HISTORICO_LEGACY_KEY, json.dumps(legado))

    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    registros = repo.listar()
    assert len(registros) == 1
    assert registros[0].id == 1600000000000
    assert registros[0].prescricao_valor == 750

    # escrita vai para a chave atual
    _adicionar(repo)
    atual = json.loads(storage.get_item(HISTORICO_KEY))
    assert [d["id"] for d in atual] == [1_700_000_000_000, 1600000000000]
    assert json.loads(storage.get_item(HISTORICO_LEGACY_KEY)) == legado


def test_chave_atual_tem_prioridade(db_path):
    storage = StorageRepo(db_path)
    storage.set_item(HISTORICO_LEGACY_KEY, json.dumps([{"id": 1, "medicamento": "antigo"}]))
    storage.set_item(HISTORICO_KEY, json.dumps([{"id": 2, "medicamento": "novo"}]))
    registros = HistoricoRepo(db_path).listar()
    assert [r.medicamento for r in registros] == ["novo"]


@pytest.mark.parametrize("payload", ["{nao json", '{"id": 1}', '[{"medicamento": "sem id"}]', "[42]"])
def test_historico_corrompido(db_path, payload):
    StorageRepo(db_path).set_item(HISTORICO_KEY, payload)
    with pytest.raises(HistoricoCorrompidoError):
        HistoricoRepo(db_path).listar()


# -------------------------
# SistemaSafeDose
# -------------------------

def test_sistema_calcula_e_registra(tmp_path):
    sistema = SistemaSafeDose(str(tmp_path / "s.sqlite"), relogio=RELOGIO)
    resultado, alerta = sistema.calcular("dipirona", 5, "g", 1000, "mg", 10, "ml", "liquido")
    assert resultado.sucesso
    assert alerta.tipo == "warning"
    historico = sistema.obter_historico()
    assert len(historico) == 1
    assert historico[0].resultado == resultado.texto
    assert historico[0].alerta == alerta.mensagem
    assert historico[0].prescricao_unidade == "g"


def test_sistema_falha_nao_registra(tmp_path):
    sistema = SistemaSafeDose(str(tmp_path / "s.sqlite"))
    resultado, alerta = sistema.calcular("dipirona", 500, "mg", 0, "mg", 10, "ml", "comprimido")
    assert resultado.sucesso is False
    assert alerta is None
    assert sistema.obter_historico() == ()


def test_sistema_sem_registro(tmp_path):
    sistema = SistemaSafeDose(str(tmp_path / "s.sqlite"))
    resultado, alerta = sistema.calcular(
        "morfina", 10, "mg", 10, "mg", 1, "ml", "injeção", registrar=False
    )
    assert resultado.sucesso and alerta.tipo == "success"
    assert sistema.obter_historico() == ()


def test_sistema_remover(tmp_path):
    sistema = SistemaSafeDose(str(tmp_path / "s.sqlite"), relogio=RELOGIO)
    sistema.calcular("dipirona", 500, "mg", 1000, "mg", 10, "ml", "comprimido")
    registro_id = sistema.obter_historico()[0].id
    assert sistema.remover_historico(registro_id) == 1
    assert sistema.obter_historico() == ()


# -------------------------
# Falhas de gravação
# -------------------------

def _falha_ao_gravar(chave, valor):
    raise sqlite3.OperationalError("database is locked")


def test_adicionar_com_falha_na_gravacao_nao_altera_memoria(db_path, monkeypatch):
    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    existente = _adicionar(repo)
    monkeypatch.setattr(repo.storage, "set_item", _falha_ao_gravar)

    with pytest.raises(sqlite3.OperationalError):
        _adicionar(repo, "morfina")

    assert [r.id for r in repo.listar()] == [existente.id]
    assert HistoricoRepo(db_path).listar() == repo.listar()


def test_remover_com_falha_na_gravacao_nao_altera_memoria(db_path, monkeypatch):
    repo = HistoricoRepo(db_path, relogio=RELOGIO)
    existente = _adicionar(repo)
    monkeypatch.setattr(repo.storage, "set_item", _falha_ao_gravar)

    with pytest.raises(sqlite3.OperationalError):
        repo.remover(existente.id)

    assert [r.id for r in repo.listar()] == [existente.id]


def test_sistema_propaga_falha_de_gravacao(tmp_path, monkeypatch):
    sistema = SistemaSafeDose(str(tmp_path / "s.sqlite"), relogio=RELOGIO)
    sistema.calcular("dipirona", 500, "mg", 1000, "mg", 10, "ml", "comprimido")
    registro_id = sistema.obter_historico()[0].id

    transacoes = []
    monkeypatch.setattr(
        "safedose.usecases.sistema.log_transaction",
        lambda operation, data, result=None, error=None: transacoes.append((operation, error)),
    )
    monkeypatch.setattr(sistema.historico.storage, "set_item", _falha_ao_gravar)

    with pytest.raises(sqlite3.OperationalError):
        sistema.calcular("morfina", 10, "mg", 10, "mg", 1, "ml", "injeção")
    with pytest.raises(sqlite3.OperationalError):
        sistema.remover_historico(registro_id)

    assert transacoes == [
        ("calculo", "database is locked"),
        ("remover_historico", "database is locked"),
    ]
    assert [r.id for r in sistema.obter_historico()] == [registro_id]


def test_chave_atual_vazia_usa_chave_antiga(db_path):
    storage = StorageRepo(db_path)
    storage.set_item(HISTORICO_KEY, "")
    storage.set_item(HISTORICO_LEGACY_KEY, json.dumps([{"id": 1, "medicamento": "antigo"}]))
    assert [r.medicamento for r in HistoricoRepo(db_path).listar()] == ["antigo"]


def test_chaves_vazias_resultam_em_historico_vazio(db_path):
    storage = StorageRepo(db_path)
    storage.set_item(HISTORICO_KEY, "")
    storage.set_item(HISTORICO_LEGACY_KEY, "")
    assert HistoricoRepo(db_path).listar() == ()
