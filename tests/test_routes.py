from datetime import datetime
from decimal import Decimal

from app.models import AuditLog, Appointment, ClinicalNote, FinancialTransaction, Procedure, Product, User


class TestAuth:
    def test_login_returns_token(self, client, admin_user):
        response = client.post('/api/auth/login', json={'username': 'admin', 'senha': 'segredo123'})

        assert response.status_code == 200
        body = response.get_json()
        assert body['token']
        assert body['usuario']['username'] == 'admin'
        assert 'equipe' in body['usuario']['permissoes']

    def test_login_wrong_password(self, client, admin_user):
        response = client.post('/api/auth/login', json={'username': 'admin', 'senha': 'errada'})

        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_login_inactive_user(self, client, session, admin_user):
        admin_user.status = 'inativo'
        session.commit()

        response = client.post('/api/auth/login', json={'username': 'admin', 'senha': 'segredo123'})

        assert response.status_code == 401

    def test_login_requires_fields(self, client):
        response = client.post('/api/auth/login', json={'username': 'admin'})

        assert response.status_code == 400

    def test_protected_route_without_token(self, client):
        response = client.get('/api/pacientes')

        assert response.status_code == 401
        assert 'erro' in response.get_json()

    def test_me(self, client, auth_headers):
        response = client.get('/api/auth/me', headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()['data']['username'] == 'admin'
        assert 'password_hash' not in response.get_json()['data']


class TestFinalizeAppointment:
    def _url(self, appointment):
        return f'/api/agendamentos/{appointment.id}/finalizar'

    def test_success(self, client, session, auth_headers, appointment, gauze, stock, procedures):
        botox, _ = procedures
        stock(gauze, 10, '1.00')

        response = client.post(self._url(appointment), headers=auth_headers, json={
            'textoEvolucao': 'Retorno em 15 dias',
            'insumos': [{'produtoId': gauze.id, 'qtd': 2}],
            'procedimentosIds': [botox.id],
        })

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['mensagem'] == 'Atendimento finalizado com sucesso!'
        assert body['data']['status'] == Appointment.CONCLUDED
        assert session.get(Product, gauze.id).quantity == 8
        assert ClinicalNote.query.count() == 1
        assert FinancialTransaction.query.filter_by(appointment_id=appointment.id).count() == 1

    def test_insufficient_stock(self, client, session, auth_headers, appointment, gauze, stock):
        stock(gauze, 1)

        response = client.post(self._url(appointment), headers=auth_headers, json={
            'textoEvolucao': 'Evolução',
            'insumos': [{'produtoId': gauze.id, 'qtd': 5}],
        })

        assert response.status_code == 400
        body = response.get_json()
        assert body['success'] is False
        assert body['erro'] == 'Estoque insuficiente para: Gaze. Disponível: 1'
        assert session.get(Product, gauze.id).quantity == 1
        assert session.get(Appointment, appointment.id).status == Appointment.SCHEDULED
        assert ClinicalNote.query.count() == 0

    def test_unknown_procedure(self, client, auth_headers, appointment):
        response = client.post(self._url(appointment), headers=auth_headers, json={
            'procedimentosIds': [4242],
        })

        assert response.status_code == 400
        assert '4242' in response.get_json()['erro']

    def test_missing_appointment(self, client, auth_headers):
        response = client.post('/api/agendamentos/999/finalizar', headers=auth_headers, json={})

        assert response.status_code == 404

    def test_rejects_non_list_payload(self, client, auth_headers, appointment):
        response = client.post(self._url(appointment), headers=auth_headers, json={'insumos': 'gaze'})

        assert response.status_code == 400

    def test_requires_token(self, client, appointment):
        response = client.post(self._url(appointment), json={})

        assert response.status_code == 401

    def test_concluded_appointment_is_read_only(self, client, auth_headers, appointment):
        client.post(self._url(appointment), headers=auth_headers, json={})

        response = client.put(f'/api/agendamentos/{appointment.id}', headers=auth_headers,
                              json={'status': Appointment.SCHEDULED})

        assert response.status_code == 400


class TestAppointments:
    def test_create_and_filter_by_day(self, client, auth_headers, patient):
        response = client.post('/api/agendamentos', headers=auth_headers, json={
            'dataHorario': '2030-05-10T14:30:00',
            'pacienteId': patient.id,
        })
        assert response.status_code == 201
        assert response.get_json()['data']['status'] == Appointment.SCHEDULED

        response = client.get('/api/agendamentos?inicio=2030-05-10&fim=2030-05-10', headers=auth_headers)

        data = response.get_json()['data']
        assert len(data) == 1
        assert data[0]['paciente']['nome'] == 'Maria Silva'

    def test_create_rejects_concluded_status(self, client, auth_headers, patient):
        response = client.post('/api/agendamentos', headers=auth_headers, json={
            'dataHorario': '2030-05-10T14:30:00',
            'pacienteId': patient.id,
            'status': Appointment.CONCLUDED,
        })

        assert response.status_code == 400

    def test_soft_delete_hides_appointment(self, client, session, auth_headers, appointment):
        response = client.delete(f'/api/agendamentos/{appointment.id}', headers=auth_headers)
        assert response.status_code == 200

        assert client.get(f'/api/agendamentos/{appointment.id}', headers=auth_headers).status_code == 404
        assert session.get(Appointment, appointment.id).deleted_at is not None


class TestInventoryRoutes:
    def test_priced_entry_shows_up_in_finance(self, client, auth_headers, gauze):
        response = client.post('/api/estoque/movimentacao', headers=auth_headers, json={
            'produtoId': gauze.id,
            'tipo': 'ENTRADA',
            'qtd': 4,
            'valorUnitario': 2.5,
            'lote': 'L01',
            'validade': '2031-01-31',
        })
        assert response.status_code == 201
        assert response.get_json()['data']['validade'] == '2031-01-31'

        body = client.get('/api/financeiro', headers=auth_headers).get_json()
        assert [p['tipo'] for p in body['data']] == ['DESPESA']
        assert body['resumo']['despesas'] == 10.0

    def test_exit_beyond_balance(self, client, auth_headers, gauze, stock):
        stock(gauze, 2)

        response = client.post('/api/estoque/movimentacao', headers=auth_headers, json={
            'produtoId': gauze.id, 'tipo': 'SAIDA', 'qtd': 3,
        })

        assert response.status_code == 400
        assert 'Disponível: 2' in response.get_json()['erro']

    def test_unknown_product(self, client, auth_headers):
        response = client.post('/api/estoque/movimentacao', headers=auth_headers, json={
            'produtoId': 999, 'tipo': 'ENTRADA', 'qtd': 1,
        })

        assert response.status_code == 400

    def test_balance_is_consistent(self, client, auth_headers, gauze, stock):
        stock(gauze, 6)
        client.post('/api/estoque/movimentacao', headers=auth_headers, json={
            'produtoId': gauze.id, 'tipo': 'SAIDA', 'qtd': 2,
        })

        data = client.get(f'/api/estoque/produtos/{gauze.id}/saldo', headers=auth_headers).get_json()['data']

        assert data['qtd'] == 4
        assert data['qtdMovimentacoes'] == 4
        assert data['consistente'] is True

    def test_below_minimum_filter(self, client, auth_headers, gauze, syringe, stock):
        stock(syringe, 10)

        data = client.get('/api/estoque/produtos?abaixoMinimo=true', headers=auth_headers).get_json()['data']

        assert [p['nome'] for p in data] == ['Gaze']

    def test_history_lists_latest_first(self, client, auth_headers, gauze, stock):
        stock(gauze, 3)
        client.post('/api/estoque/movimentacao', headers=auth_headers, json={
            'produtoId': gauze.id, 'tipo': 'SAIDA', 'qtd': 1,
        })

        data = client.get('/api/estoque/historico', headers=auth_headers).get_json()['data']

        assert [m['tipo'] for m in data] == ['SAIDA', 'ENTRADA']
        assert data[0]['produto']['nome'] == 'Gaze'
        assert data[0]['fornecedor'] == 'Baixa Manual'


class TestProcedures:
    def test_delete_deactivates(self, client, session, auth_headers, procedures):
        botox, _ = procedures

        response = client.delete(f'/api/procedimentos/{botox.id}', headers=auth_headers)
        assert response.status_code == 200
        assert session.get(Procedure, botox.id).status == Procedure.INACTIVE

        active = client.get('/api/procedimentos', headers=auth_headers).get_json()['data']
        assert [p['id'] for p in active] == [procedures[1].id]

        everything = client.get('/api/procedimentos?todos=true', headers=auth_headers).get_json()['data']
        assert len(everything) == 2

    def test_rejects_negative_price(self, client, auth_headers):
        response = client.post('/api/procedimentos', headers=auth_headers, json={'nome': 'Laser', 'valor': -1})

        assert response.status_code == 400


class TestFinance:
    def test_manual_posting_and_summary(self, client, auth_headers):
        response = client.post('/api/financeiro', headers=auth_headers, json={
            'descricao': 'Aluguel', 'valor': '1500.00', 'tipo': 'DESPESA',
        })
        assert response.status_code == 201
        assert response.get_json()['data']['categoria'] == 'OUTROS'

        body = client.get('/api/financeiro', headers=auth_headers).get_json()
        assert body['resumo'] == {'receitas': 0.0, 'despesas': 1500.0, 'saldo': -1500.0}

    def test_rejects_invalid_type(self, client, auth_headers):
        response = client.post('/api/financeiro', headers=auth_headers, json={
            'descricao': 'Aluguel', 'valor': '10', 'tipo': 'OUTRO',
        })

        assert response.status_code == 400

    def test_period_filter(self, client, session, auth_headers):
        session.add(FinancialTransaction(
            type=FinancialTransaction.REVENUE, category='PROCEDIMENTO', description='Antigo',
            amount=Decimal('50.00'), occurred_at=datetime(2020, 1, 15, 10, 0),
        ))
        session.commit()

        in_range = client.get('/api/financeiro?inicio=2020-01-01&fim=2020-01-31', headers=auth_headers).get_json()
        default = client.get('/api/financeiro', headers=auth_headers).get_json()

        assert [p['descricao'] for p in in_range['data']] == ['Antigo']
        assert default['data'] == []


class TestPatients:
    def test_create_requires_name_and_whatsapp(self, client, auth_headers):
        response = client.post('/api/pacientes', headers=auth_headers, json={'nome': 'João'})

        assert response.status_code == 400

    def test_clinical_notes(self, client, auth_headers, patient, practitioner):
        response = client.post(f'/api/pacientes/{patient.id}/evolucoes', headers=auth_headers, json={
            'texto': 'Pele hidratada', 'profissionalId': practitioner.id,
        })
        assert response.status_code == 201

        notes = client.get(f'/api/pacientes/{patient.id}/evolucoes', headers=auth_headers).get_json()['data']
        assert len(notes) == 1

    def test_blank_clinical_note(self, client, auth_headers, patient):
        response = client.post(f'/api/pacientes/{patient.id}/evolucoes', headers=auth_headers, json={'texto': ' '})

        assert response.status_code == 400

    def test_anamnesis_upsert(self, client, auth_headers, patient):
        url = f'/api/pacientes/{patient.id}/anamnese'
        client.put(url, headers=auth_headers, json={'alergias': 'Dipirona', 'roacutan': True})
        client.put(url, headers=auth_headers, json={'gestanteLactante': True})

        data = client.get(url, headers=auth_headers).get_json()['data']

        assert data['alergias'] == 'Dipirona'
        assert data['roacutan'] is True
        assert data['gestanteLactante'] is True

    def test_soft_delete(self, client, auth_headers, patient):
        assert client.delete(f'/api/pacientes/{patient.id}', headers=auth_headers).status_code == 200
        assert client.get(f'/api/pacientes/{patient.id}', headers=auth_headers).status_code == 404


class TestPractitioners:
    def test_create_and_deactivate(self, client, auth_headers):
        response = client.post('/api/profissionais', headers=auth_headers, json={
            'nome': 'Dr. Paulo', 'especialidade': 'Estética', 'comissao': 30,
        })
        assert response.status_code == 201
        practitioner_id = response.get_json()['data']['id']

        assert client.delete(f'/api/profissionais/{practitioner_id}', headers=auth_headers).status_code == 200

        active = client.get('/api/profissionais?status=ativo', headers=auth_headers).get_json()['data']
        assert active == []


class TestUsers:
    def test_requires_team_permission(self, client, reception_headers):
        response = client.get('/api/usuarios', headers=reception_headers)

        assert response.status_code == 403

    def test_create_user(self, client, session, auth_headers):
        response = client.post('/api/usuarios', headers=auth_headers, json={
            'nome': 'Carla', 'username': 'carla', 'senha': 'abcd', 'permissoes': ['agenda'],
        })

        assert response.status_code == 201
        user = User.query.filter_by(username='carla').one()
        assert user.check_password('abcd')

    def test_duplicate_username(self, client, auth_headers, admin_user):
        response = client.post('/api/usuarios', headers=auth_headers, json={
            'nome': 'Outro', 'username': 'admin', 'senha': 'abcd',
        })

        assert response.status_code == 400

    def test_cannot_deactivate_self(self, client, auth_headers, admin_user):
        response = client.delete(f'/api/usuarios/{admin_user.id}', headers=auth_headers)

        assert response.status_code == 400


def test_status_endpoint(client):
    response = client.get('/api/status')

    assert response.status_code == 200
    assert 'status' in response.get_json()


def test_unknown_endpoint_uses_error_shape(client):
    response = client.get('/api/nao-existe')

    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'erro': 'Endpoint não encontrado.'}


def test_readiness_checks_database(client):
    response = client.get('/health/ready')

    assert response.status_code == 200
    assert response.get_json()['database'] == 'connected'


class TestWrongFieldTypes:
    def test_patient_name_must_be_text(self, client, auth_headers):
        response = client.post('/api/pacientes', headers=auth_headers, json={'nome': 123, 'whatsapp': '11'})

        assert response.status_code == 400
        assert response.get_json()['erro'] == 'Campo "nome" deve ser um texto.'

    def test_patient_update_whatsapp_must_be_text(self, client, auth_headers, patient):
        response = client.put(f'/api/pacientes/{patient.id}', headers=auth_headers, json={'whatsapp': 11999})

        assert response.status_code == 400

    def test_procedure_name_must_be_text(self, client, auth_headers):
        response = client.post('/api/procedimentos', headers=auth_headers, json={'nome': ['Botox'], 'valor': 10})

        assert response.status_code == 400

    def test_practitioner_name_must_be_text(self, client, auth_headers, practitioner):
        response = client.put(f'/api/profissionais/{practitioner.id}', headers=auth_headers, json={'nome': 7})

        assert response.status_code == 400

    def test_username_must_be_text(self, client, auth_headers):
        response = client.post('/api/usuarios', headers=auth_headers, json={
            'nome': 'Carla', 'username': 42, 'senha': 'abcd',
        })

        assert response.status_code == 400
        assert User.query.filter_by(name='Carla').count() == 0

    def test_own_password_must_be_text(self, client, auth_headers):
        response = client.put('/api/usuarios/perfil/senha', headers=auth_headers, json={'senha': 123456})

        assert response.status_code == 400


class TestAuditTrail:
    def test_records_acting_user(self, client, auth_headers, admin_user):
        response = client.post('/api/pacientes', headers=auth_headers, json={'nome': 'João', 'whatsapp': '11988887777'})
        patient_id = response.get_json()['data']['id']

        entry = AuditLog.query.filter_by(entity_type='patient', action='create').one()
        assert entry.entity_id == str(patient_id)
        assert entry.user_id == admin_user.id

    def test_decimal_details_are_stored(self, client, auth_headers):
        client.post('/api/financeiro', headers=auth_headers, json={
            'descricao': 'Aluguel', 'valor': '1500.00', 'tipo': 'DESPESA',
        })

        entry = AuditLog.query.filter_by(entity_type='financial_transaction').one()
        assert '1500.00' in entry.details
