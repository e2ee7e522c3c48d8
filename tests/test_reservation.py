from test_main import client, test_db, test_db_with_users, test_db_with_reservations, UtilTest, \
    TestingSessionLocal, future
import datetime

import pytest

from db.models import Reservation, QRLink, ReservationStatus
from util import utcnow


class TestReservationRoute:
    class TestGetMyReservations:
        def test_get_my_reservations_should_return_401_with_no_token(self, test_db):
            response = client.get('/api/reservas')

            assert response.status_code == 401, response.text

        def test_get_my_reservations_should_only_return_own_reservations(self, test_db_with_reservations):
            response = client.get('/api/reservas', headers=UtilTest.auth_header(1))

            assert response.status_code == 200, response.text
            body = response.json()
            assert body['total_count'] == 1
            assert [item['id'] for item in body['items']] == [1]
            assert body['items'][0]['user_name'] == 'Ana García'
            assert body['items'][0]['status_label'] == 'Active'
            assert body['items'][0]['service_type_label'] == 'Medical consultation'

        def test_get_my_reservations_should_paginate_newest_first(self, test_db_with_users):
            now = utcnow()
            for reservation_id in range(1, 13):
                UtilTest.insert_reservation(reservation_id, 1,
                                            created_at=now - datetime.timedelta(minutes=20 - reservation_id))

            response = client.get('/api/reservas', params={'page': 2, 'limit': 5}, headers=UtilTest.auth_header(1))

            assert response.status_code == 200, response.text
            body = response.json()
            assert [item['id'] for item in body['items']] == [7, 6, 5, 4, 3]
            assert body['total_count'] == 12
            assert body['total_pages'] == 3
            assert body['has_previous_page'] is True
            assert body['has_next_page'] is True

        @pytest.mark.parametrize("page, limit, expected_page, expected_limit", [
            (0, 10, 1, 10),
            (-3, 5, 1, 5),
            (1, 0, 1, 10),
            (1, 101, 1, 10),
            (1, 100, 1, 100),
        ])
        def test_get_my_reservations_should_normalize_paging(self, page, limit, expected_page, expected_limit,
                                                             test_db_with_reservations):
            response = client.get('/api/reservas', params={'page': page, 'limit': limit},
                                  headers=UtilTest.auth_header(1))

            assert response.status_code == 200, response.text
            assert response.json()['page'] == expected_page
            assert response.json()['limit'] == expected_limit

    class TestGetReservation:
        def test_get_reservation_should_return_detail(self, test_db_with_reservations):
            response = client.get('/api/reservas/1', headers=UtilTest.auth_header(1))

            assert response.status_code == 200, response.text
            body = response.json()
            assert body['title'] == 'reservation 1'
            assert body['user']['email'] == 'client1@reservas.com'

        def test_get_reservation_should_return_403_for_other_user(self, test_db_with_reservations):
            response = client.get('/api/reservas/2', headers=UtilTest.auth_header(1))

            assert response.status_code == 403, response.text

        @pytest.mark.parametrize("reservation_id", [1000, 999, -1])
        def test_get_reservation_should_return_404(self, reservation_id, test_db_with_reservations):
            response = client.get(f'/api/reservas/{reservation_id}', headers=UtilTest.auth_header(1))

            assert response.status_code == 404, response.text
            assert response.json() == {'detail': 'Reservation not found'}

    class TestMakeReservation:
        def test_make_reservation_should_create_active_reservation(self, test_db_with_users):
            response = client.post('/api/reservas', headers=UtilTest.auth_header(1), json={
                'title': 'Check-up',
                'description': 'yearly',
                'scheduled_at': future(),
                'service_type': 4,
            })

            assert response.status_code == 201, response.text
            body = response.json()
            assert body['status'] == ReservationStatus.ACTIVE
            assert body['status_label'] == 'Active'
            assert body['service_type_label'] == 'Laboratory exam'
            assert body['user_id'] == 1

        def test_make_reservation_should_ignore_status_in_body(self, test_db_with_users):
            response = client.post('/api/reservas', headers=UtilTest.auth_header(1), json={
                'title': 'Check-up',
                'scheduled_at': future(),
                'service_type': 1,
                'status': 3,
            })

            assert response.status_code == 201, response.text
            assert response.json()['status'] == ReservationStatus.ACTIVE

        def test_make_reservation_should_return_422_with_past_date(self, test_db_with_users):
            past = (datetime.datetime.now(datetime.UTC) - datetime.timedelta(hours=1)).isoformat()

            response = client.post('/api/reservas', headers=UtilTest.auth_header(1), json={
                'title': 'Check-up',
                'scheduled_at': past,
                'service_type': 1,
            })

            assert response.status_code == 422, response.text

        @pytest.mark.parametrize("body", [
            {'title': '', 'scheduled_at': future(), 'service_type': 1},
            {'title': 'x' * 101, 'scheduled_at': future(), 'service_type': 1},
            {'title': 'Check-up', 'scheduled_at': future(), 'service_type': 7},
            {'title': 'Check-up', 'scheduled_at': future(), 'service_type': 'abc'},
            {'title': 'Check-up', 'description': 'x' * 501, 'scheduled_at': future(), 'service_type': 1},
        ])
        def test_make_reservation_should_return_422_with_invalid_body(self, body, test_db_with_users):
            response = client.post('/api/reservas', headers=UtilTest.auth_header(1), json=body)

            assert response.status_code == 422, response.text

    class TestEditReservation:
        def test_edit_reservation_should_update_fields_and_status(self, test_db_with_reservations):
            response = client.put('/api/reservas/1', headers=UtilTest.auth_header(1), json={
                'title': 'Updated',
                'scheduled_at': future(10),
                'service_type': 2,
                'status': 2,
            })

            assert response.status_code == 200, response.text
            body = response.json()
            assert body['title'] == 'Updated'
            assert body['description'] is None
            assert body['status_label'] == 'Completed'
            assert body['service_type_label'] == 'Physical therapy'

        def test_edit_reservation_should_keep_status_when_omitted(self, test_db_with_reservations):
            with TestingSessionLocal() as session:
                session.get(Reservation, 1).status = ReservationStatus.CANCELLED
                session.commit()

            response = client.put('/api/reservas/1', headers=UtilTest.auth_header(1), json={
                'title': 'Updated',
                'scheduled_at': future(),
                'service_type': 1,
            })

            assert response.status_code == 200, response.text
            assert response.json()['status'] == ReservationStatus.CANCELLED

        def test_edit_reservation_should_return_403_for_other_user(self, test_db_with_reservations):
            response = client.put('/api/reservas/2', headers=UtilTest.auth_header(1), json={
                'title': 'Updated',
                'scheduled_at': future(),
                'service_type': 1,
            })

            assert response.status_code == 403, response.text
            with TestingSessionLocal() as session:
                assert session.get(Reservation, 2).title == 'reservation 2'

        def test_edit_reservation_should_return_422_with_past_date(self, test_db_with_reservations):
            response = client.put('/api/reservas/1', headers=UtilTest.auth_header(1), json={
                'title': 'Updated',
                'scheduled_at': '2020-01-01T10:00:00Z',
                'service_type': 1,
            })

            assert response.status_code == 422, response.text

    class TestDeleteReservation:
        def test_delete_reservation_should_keep_qr_links_detached(self, test_db_with_reservations):
            UtilTest.insert_qr_link('hash-1', 1)

            response = client.delete('/api/reservas/1', headers=UtilTest.auth_header(1))

            assert response.status_code == 200, response.text
            assert response.json() == {'message': 'Reservation deleted successfully'}
            with TestingSessionLocal() as session:
                assert session.get(Reservation, 1) is None
                assert session.query(QRLink).filter_by(hash='hash-1').one().reservation_id is None

        def test_delete_reservation_should_return_403_for_other_user(self, test_db_with_reservations):
            response = client.delete('/api/reservas/2', headers=UtilTest.auth_header(1))

            assert response.status_code == 403, response.text
            with TestingSessionLocal() as session:
                assert session.get(Reservation, 2) is not None

        def test_delete_reservation_should_return_404(self, test_db_with_reservations):
            response = client.delete('/api/reservas/100', headers=UtilTest.auth_header(1))

            assert response.status_code == 404, response.text
