"""
Streamlit Dashboard for CreatorPulse

Trending topics, one-click draft generation, draft review, source
management, the style board and delivery settings.
"""
import os
from datetime import datetime
from typing import Any, Dict, List

import pandas as pd
import plotly.express as px
import streamlit as st

from config.settings import settings
from layer_1_ingestion.ingest_sources import SourceIngestionService, topic_context
from layer_1_ingestion.source_storage import SourceStorage
from layer_2_trend_analysis.trending_topics import analyze_sources, get_trending_topics
from layer_3_draft_generation.draft_generator import DraftGenerator
from layer_3_draft_generation.draft_storage import DraftStorage
from layer_3_draft_generation.generate_drafts import generate_now
from layer_3_draft_generation.image_generator import ImageGenerator
from layer_3_draft_generation.style_analysis import VoiceAnalyzer
from layer_3_draft_generation.style_store import STYLE_PLATFORMS, StyleStore
from layer_4_delivery.deliver_digest import deliver_daily_digest
from layer_4_delivery.user_settings import UserSettingsStorage
from models.draft import DRAFT_PLATFORMS, DRAFT_STATUSES
from models.content_item import SOURCE_TYPES
from utils.errors import CreatorPulseError
from utils.logger import get_logger

logger = get_logger(__name__)

st.set_page_config(
    page_title="CreatorPulse",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
    <style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #8B5CF6;
        margin-bottom: 1rem;
    }
    </style>
""", unsafe_allow_html=True)

PLATFORM_LABELS = {'x': '𝕏 X', 'linkedin': '💼 LinkedIn', 'instagram': '📸 Instagram'}


def show_error(e: Exception):
    if isinstance(e, CreatorPulseError):
        st.error(f"{e.message}" + (f" ({e.details})" if e.details else ""))
    else:
        logger.error(f"Dashboard error: {e}", exc_info=True)
        st.error(f"Unexpected error: {e}")


def trends_dataframe(trends: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame([
        {"Topic": t["topic"], "Score": round(float(t["score"]), 1), "Source": t.get("source", ""),
         "Description": t.get("description", "")}
        for t in trends
    ])
    if not df.empty:
        df = df.sort_values("Score", ascending=False)
    return df


def render_trending_tab(user_id: str):
    st.subheader("🔥 Trending Topics")
    col1, col2 = st.columns([3, 1])
    with col1:
        topic = st.text_input("Search a topic (leave empty to use your niche)", key="trend_topic")
    with col2:
        force = st.checkbox("Refresh (skip cache)", key="trend_force")

    if st.button("Find trends", type="primary"):
        with st.spinner("Asking the trend providers..."):
            try:
                st.session_state["trends_result"] = get_trending_topics(user_id, topic=topic, force=force)
            except Exception as e:
                show_error(e)

    result = st.session_state.get("trends_result")
    if result:
        if result.get("message"):
            st.info(result["message"])
        df = trends_dataframe(result["trends"])
        if not df.empty:
            st.caption(f"Source: {result['source']}")
            fig = px.bar(df, x="Topic", y="Score", color="Source", title="Trend Scores")
            fig.update_layout(height=400, xaxis_tickangle=-30)
            st.plotly_chart(fig, width='stretch')
            st.dataframe(df, width='stretch', hide_index=True)

    st.markdown("---")
    st.subheader("📡 Momentum from your sources")
    if st.button("Analyze my sources"):
        with st.spinner("Fetching and scoring your sources..."):
            try:
                analyses = analyze_sources(user_id)["analyses"]
            except Exception as e:
                show_error(e)
                return
        if not analyses:
            st.info("No topics found in your sources yet.")
            return
        df = pd.DataFrame([
            {"Topic": a.topic, "Momentum": a.momentum_score, "Mentions": a.metrics.mentions_count,
             "Engagement": a.metrics.engagement_rate, "Reach": a.metrics.reach_multiplier}
            for a in analyses
        ])
        fig = px.bar(df.head(10), x="Topic", y="Momentum", color="Momentum",
                     color_continuous_scale="Purples", title="Topic Momentum")
        st.plotly_chart(fig, width='stretch')
        st.dataframe(df, width='stretch', hide_index=True)


def render_generate_tab(user_id: str):
    st.subheader("✍️ Generate")
    if st.button("⚡ Generate now from my sources", type="primary"):
        with st.spinner("Ingesting sources, scoring trends and writing drafts..."):
            try:
                result = generate_now(user_id)
                st.success(result["message"])
            except Exception as e:
                show_error(e)

    st.markdown("---")
    topic = st.text_input("Or write about a specific topic")
    platforms = st.multiselect("Platforms", DRAFT_PLATFORMS, default=list(DRAFT_PLATFORMS),
                               format_func=lambda p: PLATFORM_LABELS[p])
    tones = st.multiselect("Tones", ["witty", "authoritative", "friendly", "inspirational", "technical"])

    if st.button("Generate drafts", disabled=not topic or not platforms):
        with st.spinner("Writing drafts..."):
            try:
                results = DraftGenerator().generate_drafts(topic, platforms=platforms, user_id=user_id, tones=tones,
                                                           context=topic_context(topic) or None)
            except Exception as e:
                show_error(e)
                return
        storage = DraftStorage()
        for platform, result in results.items():
            st.markdown(f"### {PLATFORM_LABELS[platform]}")
            if result.get("error"):
                st.error(result["error"])
                continue
            if result["is_thread"]:
                for part in result["threads"]:
                    st.text_area(f"Post {part.id} ({part.character_count} chars)", part.content,
                                 key=f"gen_{platform}_{part.id}")
            else:
                st.text_area("Content", result["content"], height=200, key=f"gen_{platform}")
            storage.save_draft(user_id, {
                "platform": platform,
                "content": result["content"],
                "threads": result["threads"],
                "original_topic": topic,
                "title": topic,
                "metadata": {"tones": tones},
            })
        st.success("Drafts saved. Review them in the Drafts tab.")


def render_draft(user_id: str, draft, storage: DraftStorage):
    header = f"{PLATFORM_LABELS.get(draft.platform, draft.platform)} · {draft.original_topic or 'Untitled'} · {draft.status}"
    with st.expander(header):
        st.caption(f"Created {draft.created_at.strftime('%Y-%m-%d %H:%M')}")
        content = st.text_area("Content", draft.content, height=200, key=f"content_{draft.id}")
        status = st.selectbox("Status", DRAFT_STATUSES, index=DRAFT_STATUSES.index(draft.status),
                              key=f"status_{draft.id}")
        if draft.generated_image_url and os.path.exists(draft.generated_image_url):
            st.image(draft.generated_image_url)

        col1, col2, col3, col4 = st.columns(4)
        with col1:
            if st.button("💾 Save", key=f"save_{draft.id}"):
                try:
                    storage.update_draft(user_id, draft.id, {"content": content, "status": status})
                    st.success("Saved")
                except Exception as e:
                    show_error(e)
        with col2:
            if st.button("✨ Optimize", key=f"opt_{draft.id}"):
                with st.spinner("Optimizing..."):
                    try:
                        DraftGenerator().optimize_draft(user_id, draft.id, storage=storage)
                        st.success("Optimized copy saved as a new draft")
                    except Exception as e:
                        show_error(e)
        with col3:
            if draft.platform in ("linkedin", "instagram") and st.button("🖼️ Image", key=f"img_{draft.id}"):
                with st.spinner("Generating image (this can take a minute)..."):
                    try:
                        image = ImageGenerator().generate_image(draft.content, draft.platform,
                                                                draft.original_topic, user_id)
                        storage.update_draft(user_id, draft.id, {"image_url": image["image_url"],
                                                                 "generated_image_url": image["local_path"]})
                        st.image(image["local_path"])
                    except Exception as e:
                        show_error(e)
        with col4:
            if st.button("🗑️ Delete", key=f"del_{draft.id}"):
                storage.delete_draft(user_id, draft.id)
                st.rerun()


def render_drafts_tab(user_id: str):
    st.subheader("📝 Drafts")
    storage = DraftStorage()
    platform = st.selectbox("Platform", ["all", *DRAFT_PLATFORMS])
    page = st.number_input("Page", min_value=1, value=1, step=1)
    listing = storage.list_drafts(user_id, limit=20, offset=(page - 1) * 20,
                                  platform=None if platform == "all" else platform)

    if not listing["drafts"]:
        st.info("No drafts yet. Generate some first.")
        return
    st.caption(f"{listing['pagination']['total']} drafts"
               + (" · more on the next page" if listing["pagination"]["has_more"] else ""))
    for draft in listing["drafts"]:
        render_draft(user_id, draft, storage)


def render_sources_tab(user_id: str):
    st.subheader("📡 Sources")
    storage = SourceStorage()

    with st.form("add_source"):
        source_type = st.selectbox("Type", SOURCE_TYPES)
        value = st.text_input("X handle / YouTube channel id / feed or blog URL")
        verify = st.checkbox("Verify before adding", value=True)
        submitted = st.form_submit_button("Add source")
    if submitted:
        data = {"type": source_type}
        data["url" if source_type in ("rss", "blog") else "handle"] = value
        try:
            if verify:
                check = SourceIngestionService().verify_source(data)
                if not check["valid"]:
                    st.error(check["message"])
                    return
            source = storage.create_source(user_id, data)
            st.success(f"Added {source.label}")
        except Exception as e:
            show_error(e)

    sources = storage.list_sources(user_id)
    if not sources:
        st.info("No sources yet. Add an X account, YouTube channel, RSS feed or blog.")
        return
    for source in sources:
        col1, col2, col3 = st.columns([4, 1, 1])
        with col1:
            st.markdown(f"**{source.type}** · {source.label}")
        with col2:
            active = st.toggle("Active", value=source.active, key=f"active_{source.id}")
            if active != source.active:
                storage.toggle_source(user_id, source.id, active)
        with col3:
            if st.button("Remove", key=f"rm_{source.id}"):
                storage.delete_source(user_id, source.id)
                st.rerun()


def render_style_tab(user_id: str):
    st.subheader("🎨 Style Board")
    try:
        store = StyleStore()
    except Exception as e:
        show_error(e)
        return

    with st.form("add_samples"):
        platform = st.selectbox("Platform", STYLE_PLATFORMS)
        text = st.text_area("Paste your posts, one per line", height=200)
        submitted = st.form_submit_button("Add samples")
    if submitted:
        try:
            count = store.add_samples(user_id, platform, text.splitlines())
            st.success(f"Stored {count} samples")
        except Exception as e:
            show_error(e)

    samples = store.list_samples(user_id)
    st.caption(f"{len(samples)} samples stored")
    if samples and st.button("Analyze my voice"):
        with st.spinner("Analyzing..."):
            profile = VoiceAnalyzer().analyze([s["raw_text"] for s in samples])
        tone_df = pd.DataFrame(profile["tone"])
        fig = px.pie(tone_df, names="name", values="percentage", color="name",
                     color_discrete_map={t["name"]: t["color"] for t in profile["tone"]}, title="Tone Mix")
        st.plotly_chart(fig, width='stretch')
        if profile["vocabulary"]:
            st.markdown("**Signature vocabulary**")
            st.dataframe(pd.DataFrame(profile["vocabulary"]), width='stretch', hide_index=True)
        if profile["formatting_habits"]:
            st.markdown("**Formatting habits**")
            for habit in profile["formatting_habits"]:
                st.markdown(f"- {habit}")
        if profile["phrase_patterns"]:
            st.markdown("**Phrase patterns**")
            st.dataframe(pd.DataFrame(profile["phrase_patterns"]), width='stretch', hide_index=True)

    for sample in samples[:50]:
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(f"`{sample['platform']}` {sample['raw_text'][:200]}")
        with col2:
            if st.button("Delete", key=f"style_{sample['id']}"):
                store.delete_sample(user_id, sample["id"])
                st.rerun()


def render_settings_tab(user_id: str):
    st.subheader("📬 Delivery")
    storage = UserSettingsStorage()
    current = storage.get(user_id)

    with st.form("settings"):
        tz = st.text_input("Timezone", value=current.tz)
        deliver_hour = st.number_input("Delivery hour (0-23)", min_value=0, max_value=23, value=current.deliver_hour)
        email_digest = st.checkbox("Email me the daily digest", value=current.email_digest)
        digest_email = st.text_input("Digest email", value=current.digest_email or "")
        niche = st.text_input("Niche", value=current.niche)
        audience = st.text_input("Audience", value=current.audience)
        geo = st.text_input("Region", value=current.geo)
        submitted = st.form_submit_button("Save settings")
    if submitted:
        try:
            storage.update(user_id, {
                "tz": tz, "deliver_hour": deliver_hour, "email_digest": email_digest,
                "digest_email": digest_email or None, "niche": niche, "audience": audience, "geo": geo,
            })
            st.success("Settings saved")
        except Exception as e:
            show_error(e)

    st.markdown("---")
    col1, col2 = st.columns(2)
    with col1:
        preview = st.button("👀 Preview digest")
    with col2:
        send = st.button("📧 Send digest now", disabled=not current.email_digest)
    if preview or send:
        digest = deliver_daily_digest(user_id, send=send)
        if send:
            if digest["sent"]:
                st.success("Digest sent!")
            else:
                st.error((digest.get("send_result") or {}).get("error", "Digest was not sent"))
        st.markdown(f"**Subject:** {digest['subject']}")
        st.text_area("Digest", value=digest["body"], height=300, disabled=True)


def main():
    st.markdown('<div class="main-header">⚡ CreatorPulse</div>', unsafe_allow_html=True)
    settings.ensure_directories()

    st.sidebar.header("👤 User")
    user_id = st.sidebar.text_input("User id", value=settings.DEFAULT_USER_ID)
    st.sidebar.markdown("---")
    st.sidebar.markdown("**📅 Scheduled Runs:**")
    st.sidebar.markdown("Drafts and the digest run daily at your delivery hour (see `scheduler.py`)")
    st.sidebar.caption(f"Now: {datetime.now().strftime('%Y-%m-%d %H:%M')}")

    tabs = st.tabs(["🔥 Trending", "✍️ Generate", "📝 Drafts", "📡 Sources", "🎨 Style Board", "📬 Delivery"])
    with tabs[0]:
        render_trending_tab(user_id)
    with tabs[1]:
        render_generate_tab(user_id)
    with tabs[2]:
        render_drafts_tab(user_id)
    with tabs[3]:
        render_sources_tab(user_id)
    with tabs[4]:
        render_style_tab(user_id)
    with tabs[5]:
        render_settings_tab(user_id)


if __name__ == "__main__":
    main()
