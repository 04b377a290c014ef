from datetime import datetime

from insights.core.metrics import (compute_metrics, filter_speakers, format_percent, momentum_arrow,
                                   recent_meetings, speaker_sentiment_label, top_speakers,
                                   utterance_sentiment_label)
from insights.core.models import SpeakerData, TrendData, Utterance, UtteranceData
from conftest import speakers_payload, trends_payload, utterance_dict


def _utterances():
    items = [
        utterance_dict(0, meeting_id="townhall-2025-01-15", region="EMEA", department="Sales", sentiment_score=0.6),
        utterance_dict(1, meeting_id="townhall-2025-01-15", region="Unknown", department="Sales", sentiment_score=0.0),
        utterance_dict(2, meeting_id="townhall-2024-06-01", region="APAC", department="", sentiment_score=-0.2),
        utterance_dict(3, meeting_id="allhands", region="", department="Finance", sentiment_score=0.4),
    ]
    return UtteranceData(items=[Utterance.from_dict(u) for u in items], total_count=120)


def test_compute_metrics():
    now = datetime(2025, 3, 1)
    m = compute_metrics(TrendData.from_dict(trends_payload(4)), SpeakerData.from_dict(speakers_payload()),
                        _utterances(), now=now)
    assert m.total_topics == 4
    assert m.active_speakers == 3
    assert m.avg_speaker_sentiment == 20           # mean(0.8, 0.2, -0.4)
    assert m.meetings_held == 3
    assert m.quarterly_meetings == 2               # 2025-01-15 and the undated one
    assert m.unique_regions == 2                   # EMEA, APAC
    assert m.unique_departments == 2               # Sales, Finance
    assert m.total_utterances == 120
    assert m.avg_utterance_sentiment == 27         # zero scores ignored: mean(0.6, -0.2, 0.4)


def test_empty_trends_is_no_data():
    m = compute_metrics(TrendData.from_dict({"window_start": "", "window_end": "", "trends": []}), None, None)
    assert m.total_topics == 0


def test_missing_inputs_are_zero():
    m = compute_metrics(None, None, None)
    assert m.total_topics == m.active_speakers == m.meetings_held == 0
    assert m.avg_speaker_sentiment == 0
    assert m.avg_utterance_sentiment == 0


def test_recent_meetings_cutoff():
    now = datetime(2025, 5, 31)
    ids = ["m-2025-02-28", "m-2025-02-27", "m-2025-13-45", "plain", ""]
    assert recent_meetings(ids, now=now) == {"m-2025-02-28", "m-2025-13-45", "plain"}


def test_sentiment_labels():
    assert speaker_sentiment_label(0.8) == "Very Positive"
    assert speaker_sentiment_label(0.5) == "Positive"
    assert speaker_sentiment_label(0.0) == "Neutral"
    assert speaker_sentiment_label(-0.5) == "Negative"
    assert speaker_sentiment_label(-0.9) == "Very Negative"
    assert utterance_sentiment_label(0.31) == "Positive"
    assert utterance_sentiment_label(0.3) == "Neutral"
    assert utterance_sentiment_label(-0.31) == "Negative"


def test_momentum_and_percent():
    assert momentum_arrow("up") == "↑"
    assert momentum_arrow("down") == "↓"
    assert momentum_arrow("sideways") == "→"
    assert format_percent(0.4567) == "45.7%"
    assert format_percent(0.25, 0) == "25%"


def test_filter_speakers():
    results = SpeakerData.from_dict(speakers_payload()).results
    assert [s.speaker_id for s in filter_speakers(results, search="ana")] == ["s1"]
    assert [s.speaker_id for s in filter_speakers(results, search="FIN")] == ["s3"]
    assert [s.speaker_id for s in filter_speakers(results, region="NA")] == ["s2"]
    assert len(filter_speakers(results, department="all", region="all")) == 3
    assert filter_speakers(results, search="ana", department="Finance") == []


def test_top_speakers_skips_moderators():
    results = SpeakerData.from_dict(speakers_payload()).results
    assert [s.speaker_id for s in top_speakers(results)] == ["s1", "s3"]
    assert len(top_speakers(results, limit=1)) == 1


def test_percentages_round_half_up():
    speakers = SpeakerData.from_dict({"results": [
        dict(speakers_payload()["results"][0], avg_sentiment=0.1),
        dict(speakers_payload()["results"][2], avg_sentiment=0.15),
    ]})
    assert compute_metrics(None, speakers, None).avg_speaker_sentiment == 13
