from schemas.video import Video, VideoCreate, VideoList
