"""Routes for the auth blueprint."""

from firebase_admin import auth, firestore
from flask import current_app, jsonify, request, session

from suitematch.errors import ConflictError
from suitematch.user.services import UserService
from suitematch.utils import success, validate_form

from . import bp
from .forms import RegisterForm


@bp.route("/register", methods=["POST"])
def register():
    """Create the Firebase account and the matching Firestore profile."""
    form = RegisterForm()
    validate_form(form)

    email = form.email.data.strip().lower()
    try:
        user_record = auth.create_user(email=email, password=form.password.data)
    except auth.EmailAlreadyExistsError:
        raise ConflictError("This email address is already registered.")

    db = firestore.client()
    UserService.create_user_profile(
        db,
        user_record.uid,
        email=email,
        name=f"{form.first_name.data.strip()} {form.last_name.data.strip()}",
        school=form.school.data,
        graduation_year=int(form.graduation_year.data),
        registration_time=form.registration_time.data.strip(),
    )
    current_app.logger.info(f"Registered user {user_record.uid}")
    return success("Sign up successful!", 201, uid=user_record.uid)


@bp.route("/session_login", methods=["POST"])
def session_login():
    """
    This endpoint is called from the client-side after a successful Firebase login.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    id_token = (request.get_json(silent=True) or {}).get("idToken")
    try:
        decoded_token = auth.verify_id_token(id_token)
        uid = decoded_token["uid"]
        db = firestore.client()
        user_doc = db.collection("users").document(uid).get()
        if user_doc.exists:
            session["user_id"] = uid
            return jsonify({"status": "success"})
        else:
            return jsonify({"status": "error", "message": "User not found in Firestore."}), 404
    except Exception as e:
        current_app.logger.error(f"Error during session login: {e}")
        return jsonify({"status": "error", "message": "Invalid token or server error."}), 401


@bp.route("/logout", methods=["POST"])
def logout():
    """
    The actual sign-out is handled by the Firebase client-side SDK.
    This route clears the server-side session.
    """
    session.clear()
    return success("You have been logged out.")

