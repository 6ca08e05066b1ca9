import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

import config
import database
from database import serialize_doc, to_object_id
from errors import FileRequired, NotFoundError, UpstreamFailure, ValidationFailed, register_exception_handlers
from media import accept_upload, credentials_status, get_asset_host, publish_upload
from schemas import Blog, Collection, Prompt
from security import verify_admin
import store
from validation import check_lengths, clean, parse_bool, parse_id_list, parse_tags, slugify, validate_input

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

# stands in for the asset URL until the model has validated
PENDING_UPLOAD = "pending-upload"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # no database, no service
    try:
        database.ping()
        database.ensure_indexes(database.db)
    except Exception:
        logger.exception("MongoDB connection failed")
        raise
    logger.info("MongoDB connected (%s)", config.DATABASE_NAME)
    logger.info("Cloudinary config: %s", credentials_status())
    yield
    if database.client is not None:
        database.client.close()


# App setup
app = FastAPI(title="Prompt Gallery API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-admin-key"],
)

register_exception_handlers(app)


def get_db():
    if database.db is None:
        raise UpstreamFailure("Database not configured", status_code=503)
    return database.db


def schema_errors(exc: ValidationError) -> List[str]:
    return sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})


def build(model, data: Dict[str, Any]):
    try:
        return model(**data)
    except ValidationError as exc:
        raise ValidationFailed(schema_errors(exc)) from exc


@app.get("/")
def root():
    return {"message": "Prompt Gallery API running"}


@app.get("/api/health")
def health():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": time.monotonic() - STARTED_AT,
    }


# Prompts (public)
@app.get("/api/prompts")
def list_prompts(
    model: Optional[str] = None,
    industry: Optional[str] = None,
    topic: Optional[str] = None,
    trending: Optional[str] = None,
    db=Depends(get_db),
):
    query = store.prompt_filter(model, industry, topic, trending)
    return [serialize_doc(p) for p in store.find_prompts(db, query)]


@app.get("/api/prompts/prompt-of-the-day")
def get_prompt_of_the_day(db=Depends(get_db)):
    prompt = store.prompt_of_the_day(db)
    if prompt is None:
        return {"message": "No prompts available"}
    return serialize_doc(prompt)


@app.get("/api/prompts/{prompt_id}")
def get_prompt(prompt_id: str, db=Depends(get_db)):
    prompt = store.find_prompt(db, prompt_id)
    if prompt is None:
        raise NotFoundError("Prompt not found")
    return serialize_doc(prompt)


@app.post("/api/prompts/{prompt_id}/copy")
def copy_prompt(prompt_id: str, db=Depends(get_db)):
    count = store.increment_copy_count(db, prompt_id)
    if count is None:
        raise NotFoundError("Prompt not found")
    return {"message": "Copy count incremented", "newCount": count}


# Prompts (admin)
@app.post("/api/prompts", status_code=201, dependencies=[Depends(verify_admin)])
def create_prompt(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    promptText: Optional[str] = Form(None),
    negativePrompt: Optional[str] = Form(None),
    aiModel: Optional[str] = Form(None),
    industry: Optional[str] = Form(None),
    topic: Optional[str] = Form(None),
    mediaType: Optional[str] = Form(None),
    isTrending: Optional[str] = Form(None),
    isPromptOfDay: Optional[str] = Form(None),
    media: Optional[List[UploadFile]] = File(None),
    db=Depends(get_db),
    host=Depends(get_asset_host),
):
    upload = accept_upload(media)
    if upload is None:
        raise FileRequired("Media file required")

    fields = {
        "title": title,
        "description": description,
        "promptText": promptText,
        "aiModel": aiModel,
        "industry": industry,
        "topic": topic,
    }
    errors = validate_input(fields, ["title", "description", "promptText", "aiModel", "industry", "topic"])
    media_type = clean(mediaType, "image")
    if media_type not in ("image", "video"):
        errors.append("mediaType")
    if errors:
        raise ValidationFailed(errors)

    prompt_data = {
        "title": title.strip(),
        "description": description.strip(),
        "promptText": promptText.strip(),
        "negativePrompt": clean(negativePrompt),
        "aiModel": aiModel.strip(),
        "industry": industry.strip(),
        "topic": topic.strip(),
        "mediaType": media_type,
        "isTrending": parse_bool(isTrending),
        "isPromptOfDay": parse_bool(isPromptOfDay),
        "mediaUrl": PENDING_UPLOAD,
    }
    prompt = build(Prompt, prompt_data)
    prompt = prompt.model_copy(update={"mediaUrl": publish_upload(upload, host)})

    doc = store.insert_prompt(db, prompt.model_dump())
    logger.info("Prompt created by admin: %s", prompt.title)
    return {"message": "Prompt created successfully!", "prompt": serialize_doc(doc)}


@app.delete("/api/prompts/{prompt_id}", dependencies=[Depends(verify_admin)])
def delete_prompt(prompt_id: str, db=Depends(get_db)):
    deleted = store.delete_by_id(db, "prompt", prompt_id)
    if deleted is None:
        raise NotFoundError("Prompt not found")
    logger.info("Prompt deleted by admin: %s", deleted.get("title"))
    return {"message": "Deleted successfully"}


# Blogs
@app.get("/api/blogs")
def list_blogs(db=Depends(get_db)):
    return [serialize_doc(b) for b in store.published_blogs(db)]


@app.get("/api/blogs/{slug}")
def get_blog(slug: str, db=Depends(get_db)):
    blog = store.view_by_slug(db, "blog", slug)
    if blog is None:
        raise NotFoundError("Blog not found")
    return serialize_doc(blog)


@app.post("/api/blogs", status_code=201, dependencies=[Depends(verify_admin)])
def create_blog(
    title: Optional[str] = Form(None),
    slug: Optional[str] = Form(None),
    excerpt: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    isPublished: Optional[str] = Form(None),
    coverImage: Optional[List[UploadFile]] = File(None),
    db=Depends(get_db),
    host=Depends(get_asset_host),
):
    upload = accept_upload(coverImage)
    if upload is None:
        raise FileRequired("Cover image required")

    fields = {"title": title, "excerpt": excerpt, "content": content, "category": category}
    errors = validate_input(fields, ["title", "excerpt", "content", "category"])
    base_slug = clean(slug) or slugify(title or "")
    if not base_slug and "title" not in errors:
        errors.append("title")
    if errors:
        raise ValidationFailed(errors)

    blog_data = {
        "title": title.strip(),
        "slug": store.unique_slug(db, "blog", base_slug),
        "excerpt": excerpt.strip(),
        "content": content.strip(),
        "coverImage": PENDING_UPLOAD,
        "author": clean(author, "Admin"),
        "category": category.strip(),
        "tags": parse_tags(tags),
        "isPublished": parse_bool(isPublished),
    }
    blog = build(Blog, blog_data)
    blog = blog.model_copy(update={"coverImage": publish_upload(upload, host)})

    doc = store.insert_with_slug(db, "blog", blog.model_dump())
    logger.info("Blog created by admin: %s (%s)", blog.title, blog.slug)
    return {"message": "Blog created successfully!", "blog": serialize_doc(doc)}


@app.delete("/api/blogs/{blog_id}", dependencies=[Depends(verify_admin)])
def delete_blog(blog_id: str, db=Depends(get_db)):
    deleted = store.delete_by_id(db, "blog", blog_id)
    if deleted is None:
        raise NotFoundError("Blog not found")
    logger.info("Blog deleted by admin: %s", deleted.get("slug"))
    return {"message": "Deleted successfully"}


# Collections
@app.get("/api/collections")
def list_collections(
    category: Optional[str] = Query(None, description="Filter by category"),
    db=Depends(get_db),
):
    return [serialize_doc(c) for c in store.published_collections(db, category)]


@app.get("/api/collections/{slug}")
def get_collection(slug: str, db=Depends(get_db)):
    collection = store.view_by_slug(db, "collection", slug)
    if collection is None:
        raise NotFoundError("Collection not found")
    return serialize_doc(store.resolve_prompts(db, collection))


@app.post("/api/collections/{slug}/download")
def download_collection(slug: str, db=Depends(get_db)):
    downloads = store.increment_downloads(db, slug)
    if downloads is None:
        raise NotFoundError("Collection not found")
    return {"message": "Download count incremented", "downloads": downloads}


@app.post("/api/collections", status_code=201, dependencies=[Depends(verify_admin)])
def create_collection(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    prompts: Optional[str] = Form(None),
    isPublished: Optional[str] = Form(None),
    coverImage: Optional[List[UploadFile]] = File(None),
    db=Depends(get_db),
    host=Depends(get_asset_host),
):
    upload = accept_upload(coverImage)
    if upload is None:
        raise FileRequired("Cover image required")

    fields = {"title": title, "description": description, "category": category}
    errors = validate_input(fields, ["title", "description", "category"])
    errors += [f for f in check_lengths(fields, {"title": (3, 100), "description": (10, 1000)}) if f not in errors]
    prompt_ids = [to_object_id(ref) for ref in parse_id_list(prompts)]
    base_slug = slugify(title or "")
    if not base_slug and "title" not in errors:
        errors.append("title")
    if any(oid is None for oid in prompt_ids):
        errors.append("prompts")
    if errors:
        raise ValidationFailed(errors)

    collection_data = {
        "title": title.strip(),
        "slug": store.unique_slug(db, "collection", base_slug),
        "description": description.strip(),
        "coverImage": PENDING_UPLOAD,
        "category": category.strip(),
        "prompts": prompt_ids,
        "isPublished": parse_bool(isPublished),
    }
    collection = build(Collection, collection_data)
    collection = collection.model_copy(update={"coverImage": publish_upload(upload, host)})

    doc = store.insert_with_slug(db, "collection", collection.model_dump())
    logger.info("Collection created: %s (%d prompts)", doc["_id"], len(prompt_ids))
    return {"message": "Collection created!", "collection": serialize_doc(doc)}


@app.delete("/api/collections/{collection_id}", dependencies=[Depends(verify_admin)])
def delete_collection(collection_id: str, db=Depends(get_db)):
    deleted = store.delete_by_id(db, "collection", collection_id)
    if deleted is None:
        raise NotFoundError("Collection not found")
    logger.info("Collection deleted by admin: %s", deleted.get("slug"))
    return {"message": "Deleted successfully"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
