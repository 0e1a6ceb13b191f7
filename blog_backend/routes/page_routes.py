from flask import Blueprint, render_template, redirect, url_for

pages_bp = Blueprint('pages', __name__)


@pages_bp.route('/', endpoint='index')
def index(): return redirect(url_for('pages.post_list'))

@pages_bp.route('/posts', endpoint='post_list')
def post_list_page(): return render_template('post_list.html')

@pages_bp.route('/posts/new', endpoint='post_create')
def post_create_page(): return render_template('post_form.html', is_edit=False, post_id=None)

@pages_bp.route('/posts/<post_id>', endpoint='post_detail')
def post_detail_page(post_id): return render_template('post_detail.html', post_id=post_id)

@pages_bp.route('/posts/<post_id>/edit', endpoint='post_edit')
def post_edit_page(post_id): return render_template('post_form.html', is_edit=True, post_id=post_id)

@pages_bp.route('/login', endpoint='login')
def login_page(): return render_template('login.html')

@pages_bp.route('/register', endpoint='register')
def register_page(): return render_template('register.html')

@pages_bp.route('/profile', endpoint='profile')
def profile_page(): return render_template('profile.html')
