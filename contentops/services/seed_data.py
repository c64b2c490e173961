"""
Default records installed on first run and after a reset.
"""
from typing import Dict, List, Tuple

from contentops.models import (
    ConsoleModel,
    EntityKind,
    MediaFile,
    PodcastEpisode,
    SocialMediaPost,
)

SEED_MEDIA_FILES: List[dict] = [
    {
        "id": "file1",
        "title": "Podcast Cover Image",
        "url": "https://source.unsplash.com/random/300x300?podcast",
        "type": "image/jpeg",
        "uploaded": "2023-05-10T12:00:00Z",
        "fileSize": 1024000,
    },
    {
        "id": "file2",
        "title": "Interview Audio",
        "url": "https://example.com/audio1.mp3",
        "type": "audio/mpeg",
        "uploaded": "2023-05-15T14:30:00Z",
        "fileSize": 35840000,
    },
    {
        "id": "file3",
        "title": "Social Media Banner",
        "url": "https://source.unsplash.com/random/1200x630?social",
        "type": "image/png",
        "uploaded": "2023-05-20T09:45:00Z",
        "fileSize": 2048000,
    },
    {
        "id": "file4",
        "title": "Product Demo Video",
        "url": "https://example.com/video1.mp4",
        "type": "video/mp4",
        "uploaded": "2023-05-25T16:20:00Z",
        "fileSize": 102400000,
    },
    {
        "id": "file5",
        "title": "Webinar Slides",
        "url": "https://example.com/slides.pdf",
        "type": "application/pdf",
        "uploaded": "2023-05-30T11:10:00Z",
        "fileSize": 5120000,
    },
]

SEED_PODCAST_EPISODES: List[dict] = [
    {
        "id": "episode1",
        "title": "Getting Started with Social Media Management",
        "description": "Learn the basics of effective social media management for your business.",
        "audioUrl": "https://example.com/podcast1.mp3",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,1",
        "duration": 1860,
        "publishDate": "2023-06-01T10:00:00Z",
        "processed": True,
    },
    {
        "id": "episode2",
        "title": "Advanced Content Strategy Techniques",
        "description": "Dive deep into content strategies that drive engagement and conversions.",
        "audioUrl": "https://example.com/podcast2.mp3",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,2",
        "duration": 2400,
        "publishDate": "2023-06-08T10:00:00Z",
        "processed": True,
    },
    {
        "id": "episode3",
        "title": "Measuring Social Media ROI",
        "description": "How to measure and optimize your return on investment from social media campaigns.",
        "audioUrl": "https://example.com/podcast3.mp3",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,3",
        "duration": 2100,
        "publishDate": "2023-06-15T10:00:00Z",
        "processed": False,
    },
    {
        "id": "episode4",
        "title": "Building Your Personal Brand Online",
        "description": "Strategies for developing a strong personal brand across social media platforms.",
        "audioUrl": "https://example.com/podcast4.mp3",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,4",
        "duration": 1980,
        "publishDate": "2023-06-22T10:00:00Z",
        "processed": False,
    },
    {
        "id": "episode5",
        "title": "The Future of Social Media",
        "description": "Emerging trends and platforms that will shape the future of social media marketing.",
        "audioUrl": "https://example.com/podcast5.mp3",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,5",
        "duration": 2700,
        "publishDate": "2023-06-29T10:00:00Z",
        "processed": False,
    },
]

SEED_SOCIAL_MEDIA_POSTS: List[dict] = [
    {
        "id": "post1",
        "content": "🎙️ NEW EPISODE: Getting Started with Social Media Management - Learn the basics of "
                   "effective social media management for your business. #SocialMedia #Marketing",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,1",
        "platforms": ["Twitter", "LinkedIn", "Instagram"],
        "status": "Posted",
        "scheduledDate": None,
        "createdDate": "2023-06-01T12:00:00Z",
        "podcastEpisodeId": "episode1",
    },
    {
        "id": "post2",
        "content": "Just dropped a new podcast episode! 🎧 Advanced Content Strategy Techniques - Dive deep "
                   "into content strategies that drive engagement and conversions. Link in bio! "
                   "#ContentStrategy #DigitalMarketing",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,2",
        "platforms": ["Instagram", "Facebook"],
        "status": "Posted",
        "scheduledDate": None,
        "createdDate": "2023-06-08T12:00:00Z",
        "podcastEpisodeId": "episode2",
    },
    {
        "id": "post3",
        "content": "How do you measure your social media success? 📊 In our latest episode, we discuss how to "
                   "effectively measure and optimize your social media ROI. Listen now! "
                   "#SocialMediaROI #MarketingAnalytics",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,3",
        "platforms": ["Twitter", "LinkedIn", "Facebook"],
        "status": "Scheduled For Publishing",
        "scheduledDate": "2023-07-15T09:00:00Z",
        "createdDate": "2023-06-15T14:30:00Z",
        "podcastEpisodeId": "episode3",
    },
    {
        "id": "post4",
        "content": "Your personal brand matters more than ever online. 💼 Listen to our new episode on building "
                   "a strong personal brand across social platforms. #PersonalBranding #CareerGrowth",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,4",
        "platforms": ["LinkedIn"],
        "status": "Review",
        "scheduledDate": None,
        "createdDate": "2023-06-22T15:45:00Z",
        "podcastEpisodeId": "episode4",
    },
    {
        "id": "post5",
        "content": "What's next for social media? 🚀 Our latest episode explores emerging platforms and trends "
                   "that will shape the future of social media marketing. #FutureOfSocialMedia #DigitalTrends",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,5",
        "platforms": ["Twitter", "LinkedIn", "Facebook", "Instagram"],
        "status": "Approved For Publishing",
        "scheduledDate": "2023-07-29T10:00:00Z",
        "createdDate": "2023-06-29T16:20:00Z",
        "podcastEpisodeId": "episode5",
    },
    {
        "id": "post6",
        "content": "ICYMI: Our episode on Content Strategy Techniques is now available on all major podcast "
                   "platforms! #ContentMarketing #PodcastAlert",
        "imageUrl": "https://source.unsplash.com/random/300x300?podcast,microphone,2",
        "platforms": ["Twitter", "Facebook"],
        "status": "Rejected",
        "scheduledDate": None,
        "createdDate": "2023-06-10T08:15:00Z",
        "podcastEpisodeId": "episode2",
    },
]

ENTITY_MODELS: Dict[EntityKind, type] = {
    EntityKind.MEDIA_FILES: MediaFile,
    EntityKind.PODCAST_EPISODES: PodcastEpisode,
    EntityKind.SOCIAL_MEDIA_POSTS: SocialMediaPost,
}

_SEED_RECORDS: Dict[EntityKind, List[dict]] = {
    EntityKind.MEDIA_FILES: SEED_MEDIA_FILES,
    EntityKind.PODCAST_EPISODES: SEED_PODCAST_EPISODES,
    EntityKind.SOCIAL_MEDIA_POSTS: SEED_SOCIAL_MEDIA_POSTS,
}


def seed_collection(kind: EntityKind) -> Tuple[ConsoleModel, ...]:
    """Fresh, validated copy of the default records for one collection"""
    model = ENTITY_MODELS[kind]
    return tuple(model.model_validate(record) for record in _SEED_RECORDS[kind])
