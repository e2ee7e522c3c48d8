from test_main import test_db, test_db_with_users, test_db_with_reservations, web_client, \
    TestingSessionLocal, PASSWORD, UtilTest
import datetime

from db.models import Reservation, QRLink, ReservationStatus


def _login(web_client, email='client1@reservas.com', password=PASSWORD):
    return web_client.post('/account/login', data={'email': email, 'password': password}, follow_redirects=False)


def _future_form_value(days=3):
    return (datetime.datetime.now(datetime.UTC) + datetime.timedelta(days=days)).strftime('%Y-%m-%dT%H:%M')


class TestAccountPages:
    def test_login_should_set_cookie_and_redirect(self, test_db_with_users, web_client):
        response = _login(web_client)

        assert response.status_code == 303, response.text
        assert response.headers['location'] == '/dashboard'
        assert 'access_token' in response.cookies

    def test_login_should_render_error_with_wrong_password(self, test_db_with_users, web_client):
        response = _login(web_client, password='Wrong123')

        assert response.status_code == 400
        assert 'The email or password is not right' in response.text

    def test_register_should_log_in_new_user(self, test_db, web_client):
        response = web_client.post('/account/register', data={
            'first_name': 'Marta',
            'last_name': 'Ruiz',
            'email': 'marta@reservas.com',
            'password': 'Secret123',
            'confirm_password': 'Secret123',
        })

        assert response.status_code == 200, response.text
        assert 'Welcome, Marta Ruiz' in response.text

    def test_register_should_render_validation_errors(self, test_db, web_client):
        response = web_client.post('/account/register', data={
            'first_name': 'Marta',
            'last_name': 'Ruiz',
            'email': 'marta@reservas.com',
            'password': 'Secret123',
            'confirm_password': 'Other123',
        })

        assert response.status_code == 400
        assert 'passwords do not match' in response.text

    def test_logout_should_clear_session(self, test_db_with_users, web_client):
        _login(web_client)

        web_client.post('/account/logout')
        response = web_client.get('/dashboard', follow_redirects=False)

        assert response.status_code == 303
        assert response.headers['location'] == '/account/login'

    def test_forgot_password_should_render_message(self, test_db_with_users, web_client):
        response = web_client.post('/account/forgot-password', data={'email': 'client1@reservas.com'})

        assert response.status_code == 200, response.text
        assert 'password reset link has been sent' in response.text

    def test_reset_password_page_should_prefill_email_and_token(self, test_db, web_client):
        response = web_client.get('/account/reset-password', params={'email': 'a@reservas.com', 'token': 'abc'})

        assert response.status_code == 200, response.text
        assert 'value="abc"' in response.text
        assert 'value="a@reservas.com"' in response.text

    def test_reset_password_should_render_error_with_invalid_token(self, test_db_with_users, web_client):
        response = web_client.post('/account/reset-password', data={
            'email': 'client1@reservas.com',
            'token': 'invalid',
            'new_password': 'NewSecret1',
            'confirm_password': 'NewSecret1',
        })

        assert response.status_code == 400
        assert 'Invalid or expired token' in response.text


class TestReservationPages:
    def test_protected_page_should_redirect_anonymous_user(self, test_db, web_client):
        response = web_client.get('/reservas', follow_redirects=False)

        assert response.status_code == 303
        assert response.headers['location'] == '/account/login'

    def test_dashboard_should_show_recent_reservations(self, test_db_with_reservations, web_client):
        _login(web_client)

        response = web_client.get('/dashboard')

        assert response.status_code == 200, response.text
        assert 'reservation 1' in response.text
        assert 'reservation 2' not in response.text

    def test_root_should_redirect_logged_in_user_to_dashboard(self, test_db_with_users, web_client):
        _login(web_client)

        response = web_client.get('/', follow_redirects=False)

        assert response.headers['location'] == '/dashboard'

    def test_list_should_show_own_reservations(self, test_db_with_reservations, web_client):
        _login(web_client)

        response = web_client.get('/reservas')

        assert response.status_code == 200, response.text
        assert 'reservation 1' in response.text
        assert 'reservation 2' not in response.text

    def test_create_should_store_reservation(self, test_db_with_users, web_client):
        _login(web_client)

        response = web_client.post('/reservas/create', data={
            'title': 'Therapy',
            'description': '',
            'scheduled_at': _future_form_value(),
            'service_type': '2',
        }, follow_redirects=False)

        assert response.status_code == 303, response.text
        with TestingSessionLocal() as session:
            reservation = session.query(Reservation).filter_by(title='Therapy').one()
            assert reservation.user_id == 1
            assert reservation.description is None
            assert response.headers['location'] == f'/reservas/{reservation.id}'

    def test_create_should_rerender_form_with_past_date(self, test_db_with_users, web_client):
        _login(web_client)

        response = web_client.post('/reservas/create', data={
            'title': 'Therapy',
            'scheduled_at': '2020-01-01T10:00',
            'service_type': '2',
        })

        assert response.status_code == 400
        assert 'scheduled time must be in the future' in response.text

    def test_create_should_rerender_form_with_unknown_service_type(self, test_db_with_users, web_client):
        _login(web_client)

        response = web_client.post('/reservas/create', data={
            'title': 'Therapy',
            'scheduled_at': _future_form_value(),
            'service_type': 'abc',
        })

        assert response.status_code == 400
        assert 'text/html' in response.headers['content-type']
        assert 'service_type:' in response.text
        with TestingSessionLocal() as session:
            assert session.query(Reservation).filter_by(title='Therapy').first() is None

    def test_detail_should_render_error_for_other_user(self, test_db_with_reservations, web_client):
        _login(web_client)

        response = web_client.get('/reservas/2')

        assert response.status_code == 403

    def test_edit_should_update_reservation(self, test_db_with_reservations, web_client):
        _login(web_client)

        response = web_client.post('/reservas/1/edit', data={
            'title': 'Edited',
            'description': 'changed',
            'scheduled_at': _future_form_value(5),
            'service_type': '3',
            'status': '3',
        }, follow_redirects=False)

        assert response.status_code == 303, response.text
        with TestingSessionLocal() as session:
            reservation = session.get(Reservation, 1)
            assert reservation.title == 'Edited'
            assert reservation.status == ReservationStatus.CANCELLED

    def test_edit_page_should_prefill_form(self, test_db_with_reservations, web_client):
        _login(web_client)

        response = web_client.get('/reservas/1/edit')

        assert response.status_code == 200, response.text
        assert 'value="reservation 1"' in response.text

    def test_delete_should_remove_reservation(self, test_db_with_reservations, web_client):
        _login(web_client)

        response = web_client.post('/reservas/1/delete', follow_redirects=False)

        assert response.status_code == 303
        with TestingSessionLocal() as session:
            assert session.get(Reservation, 1) is None

    def test_qr_should_show_fresh_link(self, test_db_with_reservations, web_client):
        _login(web_client)

        response = web_client.post('/reservas/1/qr')

        assert response.status_code == 200, response.text
        with TestingSessionLocal() as session:
            qr_link = session.query(QRLink).filter_by(reservation_id=1).one()
            assert f'/api/qr/view/{qr_link.hash}' in response.text
            assert 'data:image/png;base64,' in response.text
            assert f'/reservas/qr/{qr_link.hash}/download' in response.text

    def test_qr_download_should_return_png(self, test_db_with_reservations, web_client):
        UtilTest.insert_qr_link('download-hash', 1)
        _login(web_client)

        response = web_client.get('/reservas/qr/download-hash/download')

        assert response.status_code == 200, response.text
        assert response.headers['content-type'] == 'image/png'
        assert 'attachment' in response.headers['content-disposition']
        assert response.content.startswith(b'\x89PNG')
        assert UtilTest.get_qr_link('download-hash').used is False

    def test_qr_download_should_reject_used_link(self, test_db_with_reservations, web_client):
        UtilTest.insert_qr_link('used-hash', 1, used=True)
        _login(web_client)

        response = web_client.get('/reservas/qr/used-hash/download')

        assert response.status_code == 400
        assert 'QR link has already been used' in response.text

    def test_qr_download_should_reject_expired_link(self, test_db_with_reservations, web_client):
        UtilTest.insert_qr_link('expired-hash', 1, minutes_left=-1)
        _login(web_client)

        response = web_client.get('/reservas/qr/expired-hash/download')

        assert response.status_code == 400
        assert 'QR link has expired' in response.text

    def test_qr_download_should_reject_other_users_link(self, test_db_with_reservations, web_client):
        UtilTest.insert_qr_link('other-hash', 2)
        _login(web_client)

        response = web_client.get('/reservas/qr/other-hash/download')

        assert response.status_code == 403
