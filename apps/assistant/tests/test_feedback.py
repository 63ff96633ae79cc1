import pytest
from datetime import timedelta
from django.utils import timezone
from apps.ledger.models import AuditLog, AuditAction
from apps.assistant.models import FeedbackPattern
from apps.assistant.services import (
    learn_from_correction,
    categorization_stats,
    most_corrected_categories,
    feedback_insights,
    reset_learning,
)


def _correct(transaction, original, corrected, user=None):
    return learn_from_correction(
        transaction=transaction,
        original_category=original,
        corrected_category=corrected,
        user=user,
    )


def _pattern(key, category, occurrences=1, confidence=0.2, last_used=None):
    return FeedbackPattern.objects.create(
        key=key,
        keywords=key.split('_'),
        description=key.replace('_', ' '),
        corrected_category=category,
        occurrences=occurrences,
        confidence=confidence,
        last_used=last_used or timezone.now(),
    )


# =============================================================================
# Learning
# =============================================================================

@pytest.mark.django_db
class TestLearnFromCorrection:

    def test_first_correction_creates_pattern(self, ai_expense, restaurants, groceries, user):
        """A first correction stores a pattern."""
        pattern = _correct(ai_expense, restaurants, groceries, user)

        assert pattern.key == 'pingo_doce_lisboa'
        assert pattern.keywords == ['pingo', 'doce', 'lisboa']
        assert pattern.occurrences == 1
        assert pattern.confidence == pytest.approx(0.2)
        assert pattern.original_category == restaurants
        assert pattern.corrected_category == groceries

    def test_correction_is_audited(self, ai_expense, restaurants, groceries, user):
        """Corrections are written to the audit log."""
        _correct(ai_expense, restaurants, groceries, user)

        log = AuditLog.objects.get(table_name='ai_categorization')
        assert log.action == AuditAction.CORRECTION
        assert log.record_id == str(ai_expense.id)
        assert log.old_values == {'category_id': str(restaurants.id)}
        assert log.new_values == {
            'category_id': str(groceries.id),
            'description': 'Pingo Doce Lisboa',
        }

    def test_repeated_correction_strengthens_pattern(self, ai_expense, make_transaction, restaurants, groceries):
        """Occurrences raise the pattern confidence."""
        _correct(ai_expense, restaurants, groceries)
        again = make_transaction('Pingo Doce Lisboa Saldanha', '15.00', restaurants)

        pattern = _correct(again, restaurants, groceries)

        assert FeedbackPattern.objects.count() == 1
        assert pattern.occurrences == 2
        assert pattern.confidence == pytest.approx(0.4)
        assert pattern.keywords == ['pingo', 'doce', 'lisboa', 'saldanha']

    def test_confidence_capped(self, ai_expense, restaurants, groceries):
        """Pattern confidence stops at 0.9."""
        for _ in range(7):
            pattern = _correct(ai_expense, restaurants, groceries)

        assert pattern.occurrences == 7
        assert pattern.confidence == pytest.approx(0.9)

    def test_latest_correction_wins(self, ai_expense, restaurants, groceries, pharmacy):
        """A new correction retargets the pattern."""
        _correct(ai_expense, restaurants, groceries)
        pattern = _correct(ai_expense, restaurants, pharmacy)

        assert pattern.corrected_category == pharmacy

    def test_no_keywords(self, make_transaction, restaurants, groceries):
        """Descriptions without keywords teach nothing."""
        txn = make_transaction('MB 12', '5.00', restaurants)

        assert _correct(txn, restaurants, groceries) is None
        assert FeedbackPattern.objects.count() == 0
        assert AuditLog.objects.filter(action=AuditAction.CORRECTION).count() == 1


# =============================================================================
# Statistics
# =============================================================================

@pytest.mark.django_db
class TestCategorizationStats:

    def test_stats(self, ai_expense, make_transaction, groceries, restaurants):
        """Accuracy and validation rate over the window."""
        make_transaction('Lidl Porto', '20.00', groceries, is_validated=True)
        _correct(ai_expense, restaurants, groceries)

        stats = categorization_stats(days=30)

        assert stats['period']['days'] == 30
        assert stats['total_transactions'] == 2
        assert stats['ai_generated_transactions'] == 1
        assert stats['validated_transactions'] == 1
        assert stats['corrections'] == 1
        assert stats['ai_accuracy'] == 0
        assert stats['validation_rate'] == 50.0

    def test_empty(self, db):
        """An empty ledger gives zero rates."""
        stats = categorization_stats()

        assert stats['total_transactions'] == 0
        assert stats['ai_accuracy'] == 0
        assert stats['validation_rate'] == 0


@pytest.mark.django_db
class TestMostCorrected:

    def test_ranked_pairs(self, ai_expense, restaurants, groceries, pharmacy):
        """Corrections are ranked by frequency."""
        _correct(ai_expense, restaurants, groceries)
        _correct(ai_expense, restaurants, groceries)
        _correct(ai_expense, groceries, pharmacy)

        corrections = most_corrected_categories()

        assert corrections[0] == {
            'correction_pattern': f"{restaurants.id}->{groceries.id}",
            'count': 2,
            'from_category': 'Alimentação - Refeições fora de casa',
            'to_category': 'Alimentação - Supermercado',
        }
        assert corrections[1]['count'] == 1
        assert corrections[1]['to_category'] == 'Saúde - Medicamentos Adulto'

    def test_limit(self, ai_expense, restaurants, groceries, pharmacy):
        """Only the requested number of pairs is returned."""
        _correct(ai_expense, restaurants, groceries)
        _correct(ai_expense, groceries, pharmacy)

        assert len(most_corrected_categories(limit=1)) == 1


@pytest.mark.django_db
class TestFeedbackInsights:

    def test_counts(self, groceries):
        """Pattern and correction counts are reported."""
        _pattern('lidl_porto', groceries, occurrences=5, confidence=0.9)
        _pattern('continente_gaia', groceries, occurrences=2, confidence=0.4)
        _pattern('auchan_amadora', groceries, last_used=timezone.now() - timedelta(days=60))

        insights = feedback_insights()

        assert insights['total_patterns'] == 3
        assert insights['trusted_patterns'] == 2
        assert insights['high_confidence_patterns'] == 1
        assert insights['recent_patterns'] == 2
        assert insights['most_corrected_categories'] == []


@pytest.mark.django_db
class TestResetLearning:

    def test_removes_stale_patterns(self, groceries):
        """Patterns unused for too long are deleted."""
        _pattern('lidl_porto', groceries)
        _pattern('auchan_amadora', groceries, last_used=timezone.now() - timedelta(days=200))

        result = reset_learning(older_than_days=180)

        assert result['removed_patterns'] == 1
        assert result['remaining_patterns'] == 1
        assert FeedbackPattern.objects.filter(key='lidl_porto').exists()
