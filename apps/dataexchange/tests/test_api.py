import io
import pytest
import pandas as pd
from django.urls import reverse
from rest_framework import status
from apps.ledger.models import Transaction
from apps.dataexchange.services import DataType


def _upload(client, name, upload, data_type=DataType.TRANSACTIONS):
    return client.post(
        reverse(f'dataexchange:{name}'),
        {'file': upload, 'type': data_type},
        format='multipart',
    )


# =============================================================================
# Templates
# =============================================================================

@pytest.mark.django_db
class TestTemplate:

    def test_download(self, authenticated_client):
        """Templates download as XLSX attachments."""
        response = authenticated_client.get(reverse('dataexchange:template', args=['origins']))

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'].startswith('application/vnd.openxmlformats')
        assert 'origins_template_' in response['Content-Disposition']
        frame = pd.read_excel(io.BytesIO(response.content))
        assert frame['Name'].tolist() == ['Comum', 'Joana', 'Diogo']

    def test_unknown_type(self, authenticated_client):
        """Unknown template types return 400."""
        response = authenticated_client.get(reverse('dataexchange:template', args=['goals']))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'Valid types' in response.data['error']

    def test_basic_tier_denied(self, basic_client):
        """Bulk upload needs the premium tier."""
        response = basic_client.get(reverse('dataexchange:template', args=['banks']))

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Upload
# =============================================================================

@pytest.mark.django_db
class TestUpload:

    def test_validate(self, authenticated_client, csv_upload, income_row, expense_row):
        """Validation endpoint reports without importing."""
        response = _upload(authenticated_client, 'validate', csv_upload([income_row, expense_row]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_valid'] is True
        assert response.data['valid_records'] == 2
        assert Transaction.objects.count() == 0

    def test_validate_reports_errors(self, authenticated_client, csv_upload, income_row):
        """Row errors are returned in the response."""
        income_row[3] = 'TRANSFER'

        response = _upload(authenticated_client, 'validate', csv_upload([income_row]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_valid'] is False
        assert response.data['errors'][0]['column'] == 'Flow'
        assert response.data['errors'][0]['row'] == 2

    def test_wrong_extension(self, authenticated_client, csv_upload, income_row):
        """Files other than CSV or XLSX return 400."""
        response = _upload(authenticated_client, 'validate', csv_upload([income_row], name='rows.txt'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'Invalid file type' in response.data['error']

    def test_unknown_type(self, authenticated_client, csv_upload, income_row):
        """Unknown data types fail serializer validation."""
        response = _upload(authenticated_client, 'validate', csv_upload([income_row]), data_type='goals')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_file(self, authenticated_client):
        """A file is required."""
        response = authenticated_client.post(
            reverse('dataexchange:validate'), {'type': DataType.TRANSACTIONS}, format='multipart'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_error_report(self, authenticated_client, csv_upload, income_row):
        """Error report downloads as XLSX."""
        income_row[3] = 'TRANSFER'

        response = _upload(authenticated_client, 'error-report', csv_upload([income_row], name='janeiro.csv'))

        assert response.status_code == status.HTTP_200_OK
        assert 'janeiro_errors_' in response['Content-Disposition']
        report = pd.read_excel(io.BytesIO(response.content), sheet_name='Errors')
        assert report['Error'].tolist() == ['Invalid flow value']

    def test_import(self, authenticated_client, user, csv_upload, income_row, expense_row):
        """Import records the uploading member."""
        response = _upload(authenticated_client, 'import', csv_upload([income_row, expense_row]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['successful'] == 2
        assert response.data['failed'] == 0
        assert Transaction.objects.filter(created_by=user).count() == 2

    def test_free_tier_denied(self, free_client, csv_upload, income_row):
        """Free members cannot import."""
        response = _upload(free_client, 'import', csv_upload([income_row]))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Transaction.objects.count() == 0

    def test_unauthenticated(self, api_client, csv_upload, income_row):
        """Anonymous requests are rejected."""
        response = _upload(api_client, 'import', csv_upload([income_row]))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Export
# =============================================================================

@pytest.mark.django_db
class TestExport:

    def test_csv(self, basic_client, expense, income):
        """CSV export comes with record count headers."""
        response = basic_client.get(reverse('dataexchange:export'))

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'].startswith('text/csv')
        assert response['X-Record-Count'] == '2'
        assert 'X-Generated-At' in response
        assert 'attachment; filename="transactions_' in response['Content-Disposition']

    def test_excel(self, basic_client, expense):
        """Excel export honours type and include_metadata."""
        response = basic_client.get(
            reverse('dataexchange:export'),
            {'type': 'categories', 'file_format': 'excel', 'include_metadata': 'false'},
        )

        assert response.status_code == status.HTTP_200_OK
        assert list(pd.read_excel(io.BytesIO(response.content), sheet_name=None)) == ['Categories']

    def test_date_filter(self, basic_client, expense, income):
        """Query filters reach the export."""
        response = basic_client.get(reverse('dataexchange:export'), {'date_from': '2024-02-01'})

        assert response['X-Record-Count'] == '1'

    def test_invalid_date_range(self, basic_client):
        """date_from after date_to returns 400."""
        response = basic_client.get(
            reverse('dataexchange:export'),
            {'date_from': '2024-03-01', 'date_to': '2024-01-01'},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_format(self, basic_client):
        """Unknown formats return 400."""
        response = basic_client.get(reverse('dataexchange:export'), {'file_format': 'pdf'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_free_tier_denied(self, free_client):
        """Export needs the basic tier."""
        response = free_client.get(reverse('dataexchange:export'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
